"""
Plasma fractal (midpoint displacement) height generator.

The grid is (size + 1) x (size + 1) so that both edges of a block can be
sampled. Generation works by:
1. Seeding structural values (corners, centre, arbitrary anchors)
2. Repeatedly halving the step size
3. Filling each blank midpoint from the average of its neighbours plus a
   random offset proportional to the current step

Offsets shrink geometrically with the step size, which gives the 1/f
roughness of the result. The smooth() variant runs the same diffusion with
no offsets and is used to interpolate road levels.
"""

from typing import Optional

import numpy as np

from ..config.generation_settings import WILD_BLOCK_SIZE
from .alea_prng import AleaPRNG

# Diagonal offsets are scaled by 181/256 (~1/sqrt(2)) to hide the square grid
DIAGONAL_SCALE = 181


def _shift(s: slice, delta: int) -> slice:
    return slice(s.start + delta, s.stop + delta, s.step)


class PlasmaFractal:
    """
    Midpoint displacement heightfield over a (size + 1)^2 grid.

    Cells carry an explicit filled flag; only cells that are still blank are
    written during generate() and smooth(), so anything seeded beforehand is
    kept. Blank cells read as 0.
    """

    def __init__(self, prng: Optional[AleaPRNG] = None, size: int = WILD_BLOCK_SIZE):
        """
        Initialize the fractal grid.

        Args:
            prng: Generator used for random offsets; only generate() needs it
            size: Step count per side, a power of two
        """
        if size < 2 or size & (size - 1):
            raise ValueError(f"Fractal size must be a power of two, got {size}")

        self.size = size
        self.prng = prng
        self.grid = np.zeros((size + 1, size + 1), dtype=np.int64)
        self.filled = np.zeros((size + 1, size + 1), dtype=bool)

    def clear(self) -> None:
        """Mark every cell as not yet filled."""
        self.grid.fill(0)
        self.filled.fill(False)

    def set_corners(self, val: int) -> None:
        """Set all four corner values to the same value."""
        for y in (0, self.size):
            for x in (0, self.size):
                self.set_value(x, y, val)

    def set_center(self, val: int) -> None:
        mid = self.size // 2
        self.set_value(mid, mid, val)

    def get_value(self, x: int, y: int) -> int:
        return int(self.grid[y, x])

    def set_value(self, x: int, y: int, val: int) -> None:
        self.grid[y, x] = val
        self.filled[y, x] = True

    def is_filled(self, x: int, y: int) -> bool:
        return bool(self.filled[y, x])

    def generate(self) -> None:
        """Fill all blank cells with fractal height data."""
        if self.prng is None:
            raise ValueError("PlasmaFractal.generate() requires a PRNG")
        self._diffuse(randomize=True)

    def smooth(self) -> None:
        """Fill all blank cells by plain averaging, without random offsets."""
        self._diffuse(randomize=False)

    def _diffuse(self, randomize: bool) -> None:
        n = self.size
        hstep = n

        while hstep > 1:
            lstep = hstep
            hstep //= 2

            # Horizontal midpoints: average of left and right
            rows = slice(0, n + 1, lstep)
            cols = slice(hstep, n - hstep + 1, lstep)
            total = (
                self.grid[rows, _shift(cols, -hstep)]
                + self.grid[rows, _shift(cols, hstep)]
            )
            offsets = self._offsets(rows, cols, lstep, hstep, True, randomize)
            self._fill(rows, cols, (total + offsets) // 2)

            # Vertical midpoints: average of up and down
            rows = slice(hstep, n - hstep + 1, lstep)
            cols = slice(0, n + 1, lstep)
            total = (
                self.grid[_shift(rows, -hstep), cols]
                + self.grid[_shift(rows, hstep), cols]
            )
            offsets = self._offsets(rows, cols, lstep, hstep, False, randomize)
            self._fill(rows, cols, (total + offsets) // 2)

            # Centre points: average over all four corners
            rows = slice(hstep, n - hstep + 1, lstep)
            cols = slice(hstep, n - hstep + 1, lstep)
            up, down = _shift(rows, -hstep), _shift(rows, hstep)
            left, right = _shift(cols, -hstep), _shift(cols, hstep)
            average = (
                self.grid[up, left]
                + self.grid[up, right]
                + self.grid[down, left]
                + self.grid[down, right]
            ) // 4
            offsets = self._offsets(rows, cols, lstep, hstep, True, randomize)
            self._fill(rows, cols, average + (offsets * DIAGONAL_SCALE) // 256)

    def _offsets(
        self,
        rows: slice,
        cols: slice,
        lstep: int,
        hstep: int,
        column_major: bool,
        randomize: bool,
    ) -> np.ndarray:
        """
        Random offsets for the blank cells of one pass.

        Draws are consumed in a fixed scan order (column by column or row by
        row) and only for blank cells, so the PRNG stream is independent of
        how the pass is vectorized.
        """
        blank = ~self.filled[rows, cols]
        offsets = np.zeros(blank.shape, dtype=np.int64)
        count = int(blank.sum())
        if not randomize or count == 0:
            return offsets

        draws = np.fromiter(
            (self.prng.randint1(lstep * 256) for _ in range(count)),
            dtype=np.int64,
            count=count,
        ) - hstep * 256

        if column_major:
            offsets.T[blank.T] = draws
        else:
            offsets[blank] = draws
        return offsets

    def _fill(self, rows: slice, cols: slice, values: np.ndarray) -> None:
        blank = ~self.filled[rows, cols]
        target = self.grid[rows, cols]
        target[blank] = values[blank]
        self.filled[rows, cols] = True
