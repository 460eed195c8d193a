import numpy as np  # type: ignore
from dataclasses import dataclass, field
from typing import List, Optional

from .errors import ConvergenceError
from .scene import Scene

# Relative change in total light in the scene by the point we stop iterating.
CONVERGENCE_TARGET = 0.001
MAX_ITERATIONS = 10000

# Rec. 709 luminance weights.
LUMA = np.array([0.2126, 0.7152, 0.0722])


@dataclass
class SolveResult:
    iterations: int
    total_light: float
    relative_change: float
    history: List[float] = field(default_factory=list)


def iterate_lighting(scene: Scene, transfers: np.ndarray) -> None:
    """One Jacobi step: every patch gathers from the previous radiance snapshot.

    - Emitters receive full-intensity white.
    - Others receive sum_j radiance[j] * transfers[i, j], j != i.
    - The received light is multiplied by the material colour.
    """
    n = len(scene)
    transfers = np.asarray(transfers, dtype=np.float64)
    if transfers.shape != (n, n):
        raise ValueError(
            f"transfer matrix shape {transfers.shape} does not match {n} patches"
        )
    radiance = scene.radiances()
    # A patch never lights itself.
    incoming = transfers @ radiance - np.diag(transfers)[:, None] * radiance
    incoming[scene.emitter_mask()] = 1.0
    scene.set_radiances(incoming * scene.materials())


def calc_total_light(scene: Scene) -> float:
    """Area-weighted sum of patch luminance."""
    if not len(scene):
        return 0.0
    return float(np.sum((scene.radiances() @ LUMA) * scene.areas()))


def relative_change(previous: float, new: float) -> float:
    if new == 0.0:
        # A dark scene staying dark has converged.
        return 0.0 if previous == 0.0 else float("inf")
    return abs(previous / new - 1.0)


def solve(
    scene: Scene,
    transfers: np.ndarray,
    threshold: float = CONVERGENCE_TARGET,
    max_iterations: Optional[int] = MAX_ITERATIONS,
) -> SolveResult:
    """Iterate until the total light changes by at most `threshold`.

    `max_iterations=None` removes the safety cap.
    """
    print(f"[Solver] Iterating radiosity: N={len(scene)}, threshold={threshold}")
    light = 0.0
    history: List[float] = []
    iterations = 0
    while True:
        iterate_lighting(scene, transfers)
        iterations += 1
        new_light = calc_total_light(scene)
        change = relative_change(light, new_light)
        light = new_light
        history.append(light)
        print(f"[Solver] Total light: {light}")
        if change <= threshold:
            break
        if max_iterations is not None and iterations >= max_iterations:
            raise ConvergenceError(
                f"no convergence after {iterations} iterations (relative change {change:.3g})"
            )
    print(f"[Solver] Converged after {iterations} iterations.")
    return SolveResult(
        iterations=iterations,
        total_light=light,
        relative_change=change,
        history=history,
    )
