"""
Wilderness macro map generator.

Builds the overworld block grid in one pass:
1. Height, population and law fields from plasma fractals
2. Ocean suppression of population and law
3. Rivers and lakes
4. Starting town, towns and dungeons
5. Roads between places
6. Terrain classification of every block
7. Monster generation levels

The result is an immutable WildernessMap. Tile detail for a block is
produced separately by WildBlockGenerator.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Sequence, Tuple, Union

import numpy as np
import structlog

from ..config.generation_settings import MIN_WILD_SIZE, WILD_BLOCK_SIZE, WildernessOptions
from ..utils.random import create_prng
from .alea_prng import AleaPRNG
from .block_generator import NeighborRoadInfo
from .decision_tree import WildDecisionTree
from .hydrology import WildHydrology
from .places import STARTING_TOWN_KEY, Place, PlacePlanner, PlaceType
from .plasma_fractal import PlasmaFractal
from .roads import RoadBuilder
from .terrain_types import (
    GROUND_LEVEL,
    KEYPAD_DDX,
    KEYPAD_DDY,
    WildBlock,
    WildGenData,
    WildInfo,
    road_level,
)

logger = structlog.get_logger()

# Corner seeds for the parameter fractals are drawn from [0, 4096)
FIELD_CORNER_RANGE = 4096


def normalize_field(values: np.ndarray) -> np.ndarray:
    """
    Stretch a field to exactly [0, 255].

    A constant field is returned unchanged.
    """
    values = np.asarray(values, dtype=np.int64)
    lo, hi = int(values.min()), int(values.max())
    if hi <= lo:
        return values.copy()
    return (values - lo) * 255 // (hi - lo)


def block_to_tile(wild_x: int, wild_y: int) -> Tuple[int, int]:
    """Tile coordinates of a block's top-left corner."""
    return wild_x * WILD_BLOCK_SIZE, wild_y * WILD_BLOCK_SIZE


def tile_to_block(tile_x: int, tile_y: int) -> Tuple[int, int]:
    """Block containing a tile."""
    return tile_x // WILD_BLOCK_SIZE, tile_y // WILD_BLOCK_SIZE


def _read_only(array: np.ndarray) -> np.ndarray:
    array.setflags(write=False)
    return array


@dataclass(frozen=True, eq=False)
class WildernessMap:
    """Generated wilderness. All arrays are read-only and indexed [y, x]."""

    size: int
    seed: int
    wild: np.ndarray
    place: np.ndarray
    info: np.ndarray
    mon_gen: np.ndarray
    mon_prob: np.ndarray
    places: Tuple[Place, ...]
    hgt_map: np.ndarray
    pop_map: np.ndarray
    law_map: np.ndarray
    _places_by_key: Dict[str, Place] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "_places_by_key", {p.key: p for p in self.places})

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.size and 0 <= y < self.size

    def get_block(self, x: int, y: int) -> Optional[WildBlock]:
        """Block at (x, y), or None outside the map."""
        if not self.in_bounds(x, y):
            return None
        return WildBlock(
            wild=int(self.wild[y, x]),
            place=int(self.place[y, x]),
            info=int(self.info[y, x]),
            mon_gen=int(self.mon_gen[y, x]),
            mon_prob=int(self.mon_prob[y, x]),
        )

    def iter_blocks(self) -> Iterator[Tuple[int, int, WildBlock]]:
        """Yield (x, y, block) in row-major order."""
        for y in range(self.size):
            for x in range(self.size):
                yield x, y, self.get_block(x, y)

    def get_place(self, key: str) -> Optional[Place]:
        return self._places_by_key.get(key)

    def get_place_at(self, x: int, y: int) -> Optional[Place]:
        """Place whose footprint covers (x, y)."""
        if not self.in_bounds(x, y):
            return None
        number = int(self.place[y, x])
        return self.places[number - 1] if number else None

    def get_starting_position(self) -> Tuple[int, int]:
        """Origin of the starting town, or the map centre without one."""
        town = self.get_place(STARTING_TOWN_KEY)
        if town is None:
            return self.size // 2, self.size // 2
        return town.x, town.y

    def neighbor_road_info(self, x: int, y: int) -> NeighborRoadInfo:
        """
        Road levels around block (x, y) for tile synthesis.

        Blocks off the map count as ground.
        """
        levels = []
        for direction in range(1, 10):
            nx, ny = x + KEYPAD_DDX[direction], y + KEYPAD_DDY[direction]
            if self.in_bounds(nx, ny):
                levels.append(road_level(int(self.info[ny, nx])))
            else:
                levels.append(GROUND_LEVEL)

        has_road = self.in_bounds(x, y) and bool(
            self.info[y, x] & (WildInfo.ROAD | WildInfo.TRACK)
        )
        return NeighborRoadInfo(levels=tuple(levels), has_road_flag=has_road)

    def dungeon_entrances(self) -> List[Tuple[Place, Tuple[int, int]]]:
        """Each dungeon with the tile position at the centre of its block."""
        half = WILD_BLOCK_SIZE // 2
        entrances = []
        for place in self.places:
            if place.type == PlaceType.DUNGEON:
                tile_x, tile_y = block_to_tile(place.x, place.y)
                entrances.append((place, (tile_x + half, tile_y + half)))
        return entrances

    def terrain_counts(self) -> Dict[int, int]:
        """Number of blocks per terrain type id."""
        ids, counts = np.unique(self.wild, return_counts=True)
        return {int(i): int(c) for i, c in zip(ids, counts)}


class WildernessGenerator:
    """Generates the wilderness block grid."""

    def __init__(
        self,
        gen_data: Sequence[WildGenData],
        seed: Optional[Union[int, str]] = None,
        options: Optional[WildernessOptions] = None,
        prng: Optional[AleaPRNG] = None,
    ):
        """
        Initialize the generator.

        Args:
            gen_data: Generation-type dataset
            seed: Seed for the generator's PRNG
            options: Generation options
            prng: Pre-built PRNG; overrides seed
        """
        self.options = options or WildernessOptions()
        self.prng = prng if prng is not None else create_prng(seed)
        self.gen_data = list(gen_data)
        self.decision_tree = WildDecisionTree(self.gen_data, self.prng)
        self.plasma = PlasmaFractal(self.prng)

        self.size = self.options.size
        self._reset(self.size)

    def _reset(self, size: int) -> None:
        self.size = size
        self.hgt_map = np.zeros((size, size), dtype=np.int64)
        self.pop_map = np.zeros((size, size), dtype=np.int64)
        self.law_map = np.zeros((size, size), dtype=np.int64)
        self.wild = np.zeros((size, size), dtype=np.int32)
        self.place = np.zeros((size, size), dtype=np.int32)
        self.info = np.zeros((size, size), dtype=np.uint8)
        self.mon_gen = np.zeros((size, size), dtype=np.int32)
        self.mon_prob = np.zeros((size, size), dtype=np.int32)
        self.places: List[Place] = []

    def generate(self, size: Optional[int] = None) -> WildernessMap:
        """
        Generate a complete wilderness.

        Args:
            size: Blocks per side; options.size when omitted

        Returns:
            Immutable WildernessMap
        """
        size = self.options.size if size is None else size
        if size < MIN_WILD_SIZE:
            raise ValueError(f"Wilderness size must be at least {MIN_WILD_SIZE}, got {size}")

        logger.info("Starting wilderness generation", size=size, types=len(self.gen_data))
        self._reset(size)

        self.create_wild_info()

        hydrology = WildHydrology(self.hgt_map, self.info, self.prng, self.options)
        hydrology.run()

        planner = PlacePlanner(
            self.hgt_map,
            self.pop_map,
            self.law_map,
            self.info,
            self.place,
            self.prng,
            self.options,
        )
        self.places = planner.place_all()

        roads = RoadBuilder(self.pop_map, self.law_map, self.info, self.prng, self.options)
        roads.connect_places(self.places)

        self.create_terrain()
        self.calculate_monster_levels()

        seed = self.prng.randint0(1000000)
        wild_map = WildernessMap(
            size=size,
            seed=seed,
            wild=_read_only(self.wild),
            place=_read_only(self.place),
            info=_read_only(self.info),
            mon_gen=_read_only(self.mon_gen),
            mon_prob=_read_only(self.mon_prob),
            places=tuple(self.places),
            hgt_map=_read_only(self.hgt_map),
            pop_map=_read_only(self.pop_map),
            law_map=_read_only(self.law_map),
        )

        logger.info(
            "Wilderness generation complete",
            seed=seed,
            places=len(self.places),
            anomalies=self.decision_tree.anomalies,
        )
        return wild_map

    def generate_parameter_map(self) -> np.ndarray:
        """One fractal field sampled down to the map size."""
        self.plasma.clear()
        self.plasma.set_corners(self.prng.randint0(FIELD_CORNER_RANGE))
        self.plasma.generate()

        index = np.arange(self.size) * WILD_BLOCK_SIZE // self.size
        return self.plasma.grid[np.ix_(index, index)].copy()

    def create_wild_info(self) -> None:
        """Build and normalize the height, population and law fields."""
        hgt = self.generate_parameter_map()
        pop = self.generate_parameter_map()
        law = self.generate_parameter_map()

        self.hgt_map = normalize_field(hgt)
        self.pop_map = normalize_field(pop)
        self.law_map = normalize_field(law)

        # Nobody lives at sea
        ocean = self.hgt_map < self.options.sea_level
        self.pop_map[ocean] = 0
        self.law_map[ocean] //= 2

        logger.info("Parameter fields created", ocean_blocks=int(ocean.sum()))

    def create_terrain(self) -> None:
        """Classify every block."""
        for y in range(self.size):
            for x in range(self.size):
                self.wild[y, x] = self.decision_tree.get_gen_type(
                    int(self.hgt_map[y, x]),
                    int(self.pop_map[y, x]),
                    int(self.law_map[y, x]),
                )

        logger.info("Terrain classified", types_used=len(np.unique(self.wild)))

    def calculate_monster_levels(self) -> None:
        """Monster level and frequency fall with law; places are safer."""
        lawless = 255 - self.law_map
        self.mon_gen = (lawless // 4).astype(np.int32)
        self.mon_prob = (lawless // 16).astype(np.int32)

        settled = self.place > 0
        self.mon_gen[settled] //= 4
        self.mon_prob[settled] //= 4
