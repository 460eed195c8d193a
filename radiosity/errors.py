class RadiosityError(RuntimeError):
    """Base class for failures that stop a radiosity computation."""


class RenderSetupError(RadiosityError):
    """The offscreen rendering surface could not be created or used."""


class IdentifierOverflowError(RadiosityError, ValueError):
    """A patch identifier does not fit in the colour channels."""


class DegenerateGeometryError(RadiosityError, ValueError):
    """Geometry makes a quantity undefined (e.g. zero distance)."""


class ConvergenceError(RadiosityError):
    """The radiosity iteration hit its safety cap before converging."""
