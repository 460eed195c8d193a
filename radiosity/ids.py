import numpy as np  # type: ignore
from typing import Tuple, Union

from .errors import IdentifierOverflowError

NO_PATCH = 0
NUM_CHANS = 4


class PatchIdCodec:
    """Maps patch identifiers to flat RGBA colours and back.

    Only the top `bits_per_channel` bits of R, G and B carry data, so small
    precision losses in the colour path do not change the decoded value.
    Identifier 0 is reserved for "no patch".
    """

    def __init__(self, bits_per_channel: int = 6) -> None:
        if not 1 <= bits_per_channel <= 8:
            raise ValueError(f"bits_per_channel must be in 1..8, got {bits_per_channel}")
        self.bits = bits_per_channel
        self.shift = 8 - bits_per_channel
        self.mask = (1 << bits_per_channel) - 1

    @property
    def capacity(self) -> int:
        return (1 << (3 * self.bits)) - 1

    def check_capacity(self, count: int) -> None:
        if count > self.capacity:
            raise IdentifierOverflowError(
                f"{count} patches exceed identifier capacity {self.capacity}"
            )

    def encode(self, ident: int) -> Tuple[int, int, int, int]:
        if not NO_PATCH <= ident <= self.capacity:
            raise IdentifierOverflowError(
                f"identifier {ident} outside 0..{self.capacity}"
            )
        b = self.bits
        r = (ident & self.mask) << self.shift
        g = ((ident >> b) & self.mask) << self.shift
        bl = ((ident >> (2 * b)) & self.mask) << self.shift
        return (r, g, bl, 255)

    def decode(self, pixels: Union[bytes, np.ndarray]) -> np.ndarray:
        """Decode raw RGBA bytes (or an (..., 4) uint8 array) to identifiers."""
        if isinstance(pixels, (bytes, bytearray, memoryview)):
            px = np.frombuffer(pixels, dtype=np.uint8)
        else:
            px = np.asarray(pixels, dtype=np.uint8)
        px = px.reshape(-1, NUM_CHANS).astype(np.int64) >> self.shift
        b = self.bits
        return px[:, 0] | (px[:, 1] << b) | (px[:, 2] << (2 * b))
