"""
Town and dungeon placement.

Process:
1. place_starting_town() - Best law + population block on dry land
2. place_multiple(TOWN) - Remaining towns by rejection sampling
3. place_multiple(DUNGEON) - Dungeons by rejection sampling

Places of the same type keep a minimum Manhattan distance from each other.
When the attempt budget runs out fewer places are created; this is logged
but never treated as an error.
"""

from enum import Enum
from typing import Dict, List, Optional, Tuple

import numpy as np
import structlog
from pydantic import BaseModel, ConfigDict, Field
from sklearn.neighbors import KDTree

from ..config.generation_settings import WildernessOptions
from .alea_prng import AleaPRNG
from .terrain_types import TownMonstType, WildInfo

logger = structlog.get_logger()

STARTING_TOWN_KEY = "starting_town"


class PlaceType(str, Enum):
    """Kind of place occupying wilderness blocks."""

    TOWN = "town"
    DUNGEON = "dungeon"


class Place(BaseModel):
    """A town or dungeon entrance on the wilderness map."""

    model_config = ConfigDict(frozen=True)

    key: str = Field(description="Unique place key")
    type: PlaceType = Field(description="Type of place")
    name: str = Field(description="Display name")
    x: int = Field(description="X position in blocks")
    y: int = Field(description="Y position in blocks")
    xsize: int = Field(default=1, description="Width in blocks")
    ysize: int = Field(default=1, description="Height in blocks")
    seed: int = Field(default=0, description="Seed for the place's own generation")
    data: int = Field(default=0, description="Population for towns, 0 for others")
    monst_type: TownMonstType = Field(
        default=TownMonstType.NONE, description="Monster population type"
    )

    @property
    def center(self) -> Tuple[int, int]:
        """Median block of the footprint."""
        return self.x + self.xsize // 2, self.y + self.ysize // 2

    def contains(self, x: int, y: int) -> bool:
        return self.x <= x < self.x + self.xsize and self.y <= y < self.y + self.ysize


class PlacePlanner:
    """Chooses locations for towns and dungeons."""

    def __init__(
        self,
        heights: np.ndarray,
        population: np.ndarray,
        law: np.ndarray,
        info: np.ndarray,
        place_grid: np.ndarray,
        prng: AleaPRNG,
        options: Optional[WildernessOptions] = None,
    ):
        """
        Initialize the planner.

        Args:
            heights: Normalized height field, indexed [y, x]
            population: Normalized population field
            law: Normalized law field
            info: Block info flags (read for water)
            place_grid: Block place numbers, updated in place
            prng: Generator for placement
            options: Generation options
        """
        self.heights = heights
        self.population = population
        self.law = law
        self.info = info
        self.place_grid = place_grid
        self.prng = prng
        self.options = options or WildernessOptions()
        self.size = heights.shape[0]
        self.sea_level = self.options.sea_level

        self.places: List[Place] = []
        self._trees: Dict[PlaceType, KDTree] = {}

    def place_all(self) -> List[Place]:
        """Place the starting town, the other towns, then dungeons."""
        logger.info("Placing towns and dungeons")

        self.place_starting_town()
        towns = self.place_multiple(
            PlaceType.TOWN, self.options.num_towns - 1, self.options.min_dist_town
        )
        dungeons = self.place_multiple(
            PlaceType.DUNGEON, self.options.num_dungeons, self.options.min_dist_dungeon
        )

        logger.info("Places created", towns=towns + 1, dungeons=dungeons)
        return self.places

    def _is_dry_land(self, x: int, y: int) -> bool:
        if self.heights[y, x] < self.sea_level:
            return False
        return not self.info[y, x] & WildInfo.WATER

    def place_starting_town(self) -> Place:
        """
        Put the starting town on the most lawful, populous dry block.

        The search leaves room for the town footprint; when no block
        qualifies the town goes to the map centre.
        """
        town_size = self.options.town_size
        best_x = best_y = self.size // 2

        region = (slice(2, self.size - town_size), slice(2, self.size - town_size))
        heights = self.heights[region]
        if heights.size:
            valid = (heights >= self.sea_level) & ~(self.info[region] & WildInfo.WATER).astype(bool)
            if valid.any():
                score = np.where(
                    valid,
                    self.law[region].astype(np.int64) + self.population[region],
                    -1,
                )
                best_y, best_x = np.unravel_index(int(np.argmax(score)), score.shape)
                best_x, best_y = int(best_x) + 2, int(best_y) + 2

        town = Place(
            key=STARTING_TOWN_KEY,
            type=PlaceType.TOWN,
            name="The Town",
            x=best_x,
            y=best_y,
            xsize=town_size,
            ysize=town_size,
            seed=self.prng.randint0(1000000),
            data=self.options.starting_town_population,
            monst_type=TownMonstType.VILLAGER,
        )
        self.add_place(town)
        return town

    def place_multiple(self, place_type: PlaceType, count: int, min_dist: int) -> int:
        """
        Place several places of one type with a minimum distance constraint.

        Args:
            place_type: Town or dungeon
            count: Number of places wanted
            min_dist: Minimum Manhattan distance to places of the same type

        Returns:
            Number of places actually placed
        """
        place_size = self.options.town_size if place_type == PlaceType.TOWN else 1
        span = self.size - place_size - 2
        if count <= 0:
            return 0
        if span <= 0:
            logger.info("Map too small for place footprint", type=place_type.value, size=self.size)
            return 0

        placed = 0
        attempts = 0
        max_attempts = count * self.options.placement_attempts_per_place

        while placed < count and attempts < max_attempts:
            attempts += 1

            x = self.prng.randint0(span) + 2
            y = self.prng.randint0(span) + 2

            if not self._is_dry_land(x, y):
                continue

            if self._too_close(place_type, x, y, min_dist):
                continue

            pop = 100 + self.prng.randint0(128)
            is_town = place_type == PlaceType.TOWN

            place = Place(
                key=f"{place_type.value}_{placed + 1}",
                type=place_type,
                name=f"Town {placed + 2}" if is_town else f"Dungeon {placed + 1}",
                x=x,
                y=y,
                xsize=place_size,
                ysize=place_size,
                seed=self.prng.randint0(1000000),
                data=pop if is_town else 0,
                monst_type=(
                    TownMonstType(1 + self.prng.randint0(5)) if is_town else TownMonstType.NONE
                ),
            )
            self.add_place(place)
            placed += 1

        if placed < count:
            logger.info(
                "Placement budget exhausted",
                type=place_type.value,
                requested=count,
                placed=placed,
                attempts=attempts,
            )
        return placed

    def _too_close(self, place_type: PlaceType, x: int, y: int, min_dist: int) -> bool:
        """Check the spacing constraint against places of the same type."""
        tree = self._trees.get(place_type)
        if tree is None:
            same_type = [[p.x, p.y] for p in self.places if p.type == place_type]
            if not same_type:
                return False
            tree = KDTree(np.array(same_type), metric="manhattan")
            self._trees[place_type] = tree

        distances, _ = tree.query([[x, y]], k=1)
        return distances[0][0] < min_dist

    def add_place(self, place: Place) -> None:
        """Record a place and mark the blocks of its footprint."""
        self.places.append(place)
        self._trees.pop(place.type, None)
        number = len(self.places)
        self.place_grid[place.y : place.y + place.ysize, place.x : place.x + place.xsize] = number
