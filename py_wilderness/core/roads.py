"""
Road network between places.

Each place is linked to its nearest neighbour. Links are drawn by recursive
midpoint subdivision: long segments are split at a jittered midpoint until
they are short enough to rasterize as straight lines. Blocks on the path get
the ROAD flag in lawful, populated areas and the TRACK flag elsewhere.
"""

import math
from typing import List, Optional

import numpy as np
import structlog
from sklearn.neighbors import KDTree

from ..config.generation_settings import WildernessOptions
from .alea_prng import AleaPRNG
from .places import Place
from .terrain_types import HAZARD_FLAGS, WildInfo

logger = structlog.get_logger()


class RoadBuilder:
    """Draws roads into the block info grid."""

    def __init__(
        self,
        population: np.ndarray,
        law: np.ndarray,
        info: np.ndarray,
        prng: AleaPRNG,
        options: Optional[WildernessOptions] = None,
    ):
        """
        Initialize the road builder.

        Args:
            population: Normalized population field, indexed [y, x]
            law: Normalized law field
            info: Block info flags, updated in place
            prng: Generator for midpoint jitter
            options: Generation options
        """
        self.population = population
        self.law = law
        self.info = info
        self.prng = prng
        self.options = options or WildernessOptions()
        self.size = info.shape[0]

        self.links = 0

    def connect_places(self, places: List[Place]) -> None:
        """Link every place to its nearest other place."""
        if len(places) < 2:
            logger.info("Not enough places for roads", places=len(places))
            return

        origins = np.array([[p.x, p.y] for p in places])
        tree = KDTree(origins, metric="manhattan")
        distances, indices = tree.query(origins, k=2)

        isolated = 0
        for i, place in enumerate(places):
            # The nearest hit is usually the place itself
            pick = 1 if indices[i][0] == i else 0
            nearest = places[int(indices[i][pick])]
            if distances[i][pick] >= self.options.road_dist:
                isolated += 1

            x1, y1 = place.center
            x2, y2 = nearest.center
            self.road_link(x1, y1, x2, y2)
            self.links += 1

        logger.info(
            "Roads created",
            links=self.links,
            out_of_range=isolated,
            road_blocks=int(np.count_nonzero(self.info & (WildInfo.ROAD | WildInfo.TRACK))),
        )

    def road_link(self, x1: int, y1: int, x2: int, y2: int) -> None:
        """
        Link two blocks with a road.

        Segments longer than the subdivision distance are split at a
        perturbed midpoint and both halves are linked recursively.
        """
        dist = abs(x2 - x1) + abs(y2 - y1)

        if dist > self.options.road_subdivide_dist:
            mid_x = (x1 + x2) // 2
            mid_y = (y1 + y2) // 2

            jitter = dist * self.options.road_perturbation
            perturb_x = math.floor((self.prng.random() - 0.5) * jitter)
            perturb_y = math.floor((self.prng.random() - 0.5) * jitter)

            px = max(0, min(self.size - 1, mid_x + perturb_x))
            py = max(0, min(self.size - 1, mid_y + perturb_y))

            self.road_link(x1, y1, px, py)
            self.road_link(px, py, x2, y2)
            return

        self._draw_line(x1, y1, x2, y2)

    def _draw_line(self, x1: int, y1: int, x2: int, y2: int) -> None:
        steps = max(abs(x2 - x1), abs(y2 - y1))
        if steps == 0:
            return

        for i in range(steps + 1):
            # Round half up
            x = math.floor(x1 + (x2 - x1) * i / steps + 0.5)
            y = math.floor(y1 + (y2 - y1) * i / steps + 0.5)

            if not (0 <= x < self.size and 0 <= y < self.size):
                continue

            # No roads through water, lava or acid
            if self.info[y, x] & HAZARD_FLAGS:
                continue

            law_pop = int(self.law[y, x]) + int(self.population[y, x])
            if law_pop >= self.options.road_law_pop_threshold:
                self.info[y, x] |= int(WildInfo.ROAD)
            else:
                self.info[y, x] |= int(WildInfo.TRACK)
