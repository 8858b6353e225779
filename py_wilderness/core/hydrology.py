"""
Hydrology for the wilderness block grid.

This module implements:
- River tracing by steepest descent from the highest blocks
- Small circular lakes scattered over dry land

Both only set the WATER info flag; block terrain is classified later.
"""

from typing import Optional

import numpy as np
import structlog

from ..config.generation_settings import WildernessOptions
from .alea_prng import AleaPRNG
from .terrain_types import WildInfo

logger = structlog.get_logger()

# Neighbour scan order for river descent (first strictly lowest wins)
RIVER_NEIGHBORS = (
    (-1, 0),
    (1, 0),
    (0, -1),
    (0, 1),
    (-1, -1),
    (1, -1),
    (-1, 1),
    (1, 1),
)


class WildHydrology:
    """Carves rivers and lakes into the block info grid."""

    def __init__(
        self,
        heights: np.ndarray,
        info: np.ndarray,
        prng: AleaPRNG,
        options: Optional[WildernessOptions] = None,
    ):
        """
        Initialize hydrology.

        Args:
            heights: Normalized height field, indexed [y, x]
            info: Block info flags, updated in place
            prng: Generator used for lake placement
            options: Generation options
        """
        self.heights = heights
        self.info = info
        self.prng = prng
        self.options = options or WildernessOptions()
        self.size = heights.shape[0]
        self.sea_level = self.options.sea_level

        self.rivers_traced = 0
        self.lakes_created = 0

    def run(self) -> None:
        """Create rivers, then lakes."""
        self.create_rivers()
        self.create_lakes()

    def create_rivers(self) -> None:
        """Start rivers at the highest blocks above the source threshold."""
        ys, xs = np.nonzero(self.heights > self.options.river_source_height)
        order = np.argsort(-self.heights[ys, xs], kind="stable")

        river_count = min(self.options.river_count, len(order))
        for index in order[:river_count]:
            self.flow_river(int(xs[index]), int(ys[index]))

        self.rivers_traced = river_count
        logger.info("Rivers traced", rivers=river_count, sources=len(order))

    def flow_river(self, start_x: int, start_y: int) -> int:
        """
        Flow a river downhill from a start block.

        The walk marks every visited block as water and moves to the strictly
        lowest of the 8 neighbours. It stops below sea level, at a local
        minimum, or after 2 * size steps.

        Returns:
            Number of blocks marked
        """
        x, y = start_x, start_y
        current_height = self.heights[y, x]
        marked = 0

        for _ in range(self.size * 2):
            self.info[y, x] |= int(WildInfo.WATER)
            marked += 1

            if current_height < self.sea_level:
                break

            lowest_x, lowest_y, lowest_height = x, y, current_height
            for dx, dy in RIVER_NEIGHBORS:
                nx, ny = x + dx, y + dy
                if 0 <= nx < self.size and 0 <= ny < self.size:
                    neighbor_height = self.heights[ny, nx]
                    if neighbor_height < lowest_height:
                        lowest_x, lowest_y, lowest_height = nx, ny, neighbor_height

            # Local minimum
            if lowest_x == x and lowest_y == y:
                break

            x, y, current_height = lowest_x, lowest_y, lowest_height

        return marked

    def create_lakes(self) -> None:
        """Scatter small circular lakes over land."""
        span = self.size - 4
        ys, xs = np.ogrid[: self.size, : self.size]

        for _ in range(self.options.lake_num):
            x = self.prng.randint0(span) + 2
            y = self.prng.randint0(span) + 2

            if self.heights[y, x] < self.sea_level:
                continue

            # Radius 1 or 2 (3x3 to 5x5)
            radius = 1 + self.prng.randint0(2)
            disc = (xs - x) ** 2 + (ys - y) ** 2 <= radius * radius
            self.info[disc] |= int(WildInfo.WATER)
            self.lakes_created += 1

        logger.info("Lakes created", lakes=self.lakes_created, attempts=self.options.lake_num)
