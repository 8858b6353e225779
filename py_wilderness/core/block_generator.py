"""
Per-block tile synthesis.

Expands one wilderness block into a 16x16 grid of terrain features. The
block's generation type selects one of four routines:

1. Fractal terrain - plasma heights mapped onto weighted features
2. Probability terrain - chained feature chances per tile
3. Overlay circle - a base terrain with concentric rings on top
4. Farm - a field, sometimes with a building

Road, water, lava and acid overlays are applied afterwards. Each call owns
a PRNG seeded from the block position, so the same block always produces
the same tiles regardless of the order blocks are visited in.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Dict, NamedTuple, Optional, Sequence, Tuple

import numpy as np
import structlog

from ..config.generation_settings import WILD_BLOCK_SIZE
from ..utils.random import create_block_prng
from .alea_prng import AleaPRNG
from .plasma_fractal import PlasmaFractal
from .terrain_types import (
    GROUND_LEVEL,
    KEYPAD_DDX,
    KEYPAD_DDY,
    ROAD_BORDER,
    FarmPlot,
    FractalTerrain,
    OverlayCircle,
    ProbabilityTerrain,
    TerrainFeature,
    WildBlock,
    WildGenData,
    WildInfo,
)

logger = structlog.get_logger()

# Weight of an exact threshold match in fractal terrain
MAX_CHANCE = 0x1000000

# Corner and centre seeds for the overlay fractals
OVERLAY_CORNER = WILD_BLOCK_SIZE * 64
OVERLAY_CENTER = WILD_BLOCK_SIZE * 192
DEEP_WATER_LEVEL = WILD_BLOCK_SIZE * 160
SHALLOW_WATER_LEVEL = WILD_BLOCK_SIZE * 140
HAZARD_LEVEL = WILD_BLOCK_SIZE * 150

# Ring thresholds for overlay circles
CIRCLE_EDGE = WILD_BLOCK_SIZE * 128
CIRCLE_OUTER = WILD_BLOCK_SIZE * 171
CIRCLE_MIDDLE = WILD_BLOCK_SIZE * 213

# Corner direction -> the two orthogonal directions beside it
CORNER_SIDES = {7: (4, 8), 9: (8, 6), 3: (6, 2), 1: (2, 4)}
ORTHOGONALS = (2, 4, 6, 8)


class FarmPattern(IntEnum):
    GRASS = 1
    DIRT = 2
    STRIPES = 3
    DIRT_BUILDING = 4
    GRASS_BUILDING = 5


# Pattern for each of the eight farm rolls
FARM_PATTERNS = (
    FarmPattern.GRASS,
    FarmPattern.GRASS,
    FarmPattern.GRASS,
    FarmPattern.STRIPES,
    FarmPattern.STRIPES,
    FarmPattern.DIRT,
    FarmPattern.DIRT_BUILDING,
    FarmPattern.GRASS_BUILDING,
)


class WildTile(NamedTuple):
    feat: int
    info: int


@dataclass(eq=False)
class TileGrid:
    """A block's tiles as parallel feature and flag arrays, indexed [y, x]."""

    feat: np.ndarray
    info: np.ndarray

    @classmethod
    def filled(cls, feat: int, size: int = WILD_BLOCK_SIZE) -> "TileGrid":
        return cls(
            feat=np.full((size, size), int(feat), dtype=np.int32),
            info=np.zeros((size, size), dtype=np.uint8),
        )

    @property
    def shape(self) -> Tuple[int, int]:
        return self.feat.shape

    def tile(self, x: int, y: int) -> WildTile:
        return WildTile(feat=int(self.feat[y, x]), info=int(self.info[y, x]))

    def count(self, feat: int) -> int:
        """Number of tiles with the given feature."""
        return int(np.count_nonzero(self.feat == feat))


@dataclass(frozen=True)
class NeighborRoadInfo:
    """
    Road levels of a block and its eight neighbours.

    Levels are in keypad order 1-9 (7 8 9 / 4 5 6 / 1 2 3), so level(5) is
    the block itself and level(8) is the block to the north.
    """

    levels: Tuple[int, ...]
    has_road_flag: bool = False

    def __post_init__(self):
        if len(self.levels) != 9:
            raise ValueError(f"Expected 9 road levels, got {len(self.levels)}")
        object.__setattr__(self, "levels", tuple(int(v) for v in self.levels))

    def level(self, direction: int) -> int:
        return self.levels[direction - 1]

    @classmethod
    def from_directions(
        cls, levels: Dict[int, int], has_road_flag: bool = False
    ) -> "NeighborRoadInfo":
        """Build from a {direction: level} mapping; missing directions are ground."""
        return cls(
            levels=tuple(levels.get(d, GROUND_LEVEL) for d in range(1, 10)),
            has_road_flag=has_road_flag,
        )


class WildBlockGenerator:
    """Synthesizes the tiles of a single wilderness block."""

    def __init__(self, gen_data: Sequence[WildGenData]):
        """
        Initialize the block generator.

        Args:
            gen_data: Generation-type dataset
        """
        self.gen_data = list(gen_data)
        self.data_by_id: Dict[int, WildGenData] = {entry.id: entry for entry in self.gen_data}

    def get_gen_data(self, type_id: int) -> Optional[WildGenData]:
        return self.data_by_id.get(type_id)

    def generate_block(
        self,
        block: WildBlock,
        wild_x: int,
        wild_y: int,
        wild_seed: int,
        neighbor_roads: Optional[NeighborRoadInfo] = None,
    ) -> TileGrid:
        """
        Generate the tiles for one block.

        Args:
            block: The macro block to expand
            wild_x: Block x position
            wild_y: Block y position
            wild_seed: Seed of the wilderness map
            neighbor_roads: Road levels around the block; no road overlay when omitted

        Returns:
            Fresh 16x16 TileGrid
        """
        prng = create_block_prng(wild_seed, wild_x, wild_y)

        gen_data = self.get_gen_data(block.wild)
        if gen_data is None:
            logger.debug("Unknown terrain type, using grass", wild=block.wild, x=wild_x, y=wild_y)
            return TileGrid.filled(TerrainFeature.GRASS)

        road = bool(block.info & WildInfo.ROAD)
        tiles = self._run_routine(gen_data, prng, road, ())

        if neighbor_roads is not None:
            self.apply_road_overlay(tiles, neighbor_roads)
        if block.info & WildInfo.WATER:
            self._apply_water_overlay(tiles, prng)
        if block.info & WildInfo.LAVA:
            self._apply_hazard_overlay(tiles, prng, TerrainFeature.SHAL_LAVA, WildInfo.LAVA)
        if block.info & WildInfo.ACID:
            self._apply_hazard_overlay(tiles, prng, TerrainFeature.SHAL_ACID, WildInfo.ACID)

        return tiles

    def _run_routine(
        self,
        gen_data: WildGenData,
        prng: AleaPRNG,
        road: bool,
        visited: Tuple[int, ...],
    ) -> TileGrid:
        routine = gen_data.routine

        if isinstance(routine, FractalTerrain):
            return self._make_fractal_terrain(routine, prng)
        if isinstance(routine, ProbabilityTerrain):
            return self._make_probability_terrain(routine, prng)
        if isinstance(routine, OverlayCircle):
            return self._make_overlay_circle(routine, prng, road, visited + (gen_data.id,))
        if isinstance(routine, FarmPlot):
            return self._make_farm(prng, road)

        logger.warning("Unknown generation routine", type_id=gen_data.id, routine=gen_data.gen_routine)
        return TileGrid.filled(TerrainFeature.GRASS)

    def _block_fractal(self, prng: AleaPRNG, corner: int, center: int) -> np.ndarray:
        plasma = PlasmaFractal(prng)
        plasma.set_corners(corner)
        plasma.set_center(center)
        plasma.generate()
        return plasma.grid[:WILD_BLOCK_SIZE, :WILD_BLOCK_SIZE]

    def _make_fractal_terrain(self, routine: FractalTerrain, prng: AleaPRNG) -> TileGrid:
        """Pick each tile's feature by closeness of its height to the thresholds."""
        heights = self._block_fractal(prng, WILD_BLOCK_SIZE * 128, WILD_BLOCK_SIZE * 128)
        elements = np.clip(heights // WILD_BLOCK_SIZE, 0, 255)

        tiles = TileGrid.filled(TerrainFeature.GRASS)
        for y in range(WILD_BLOCK_SIZE):
            for x in range(WILD_BLOCK_SIZE):
                tiles.feat[y, x] = pick_feat(routine.features, int(elements[y, x]), prng)
        return tiles

    def _make_probability_terrain(self, routine: ProbabilityTerrain, prng: AleaPRNG) -> TileGrid:
        tiles = TileGrid.filled(TerrainFeature.GRASS)
        last = len(routine.steps) - 1

        for y in range(WILD_BLOCK_SIZE):
            for x in range(WILD_BLOCK_SIZE):
                feat = TerrainFeature.GRASS
                for k, (new_feat, chance) in enumerate(routine.steps):
                    if not new_feat:
                        break
                    feat = new_feat
                    if k == last or not chance:
                        break
                    if prng.randint0(chance + 1) != 0:
                        break
                tiles.feat[y, x] = feat

        return tiles

    def _make_overlay_circle(
        self,
        routine: OverlayCircle,
        prng: AleaPRNG,
        road: bool,
        visited: Tuple[int, ...],
    ) -> TileGrid:
        """Base terrain with rough concentric rings around the block centre."""
        base = self.get_gen_data(routine.base_type)
        if base is None or base.id in visited:
            logger.debug("Overlay base unusable, using grass", base_type=routine.base_type)
            tiles = TileGrid.filled(TerrainFeature.GRASS)
        else:
            tiles = self._run_routine(base, prng, road, visited)

        heights = self._block_fractal(prng, WILD_BLOCK_SIZE * 64, WILD_BLOCK_SIZE * 256)

        for y in range(WILD_BLOCK_SIZE):
            for x in range(WILD_BLOCK_SIZE):
                element = heights[y, x]

                if element < CIRCLE_EDGE:
                    continue

                # Dithered ring edges
                if element < CIRCLE_OUTER and prng.one_in(2):
                    if routine.outer:
                        tiles.feat[y, x] = routine.outer
                    continue

                if element < CIRCLE_MIDDLE and prng.one_in(2):
                    if routine.middle:
                        tiles.feat[y, x] = routine.middle
                    continue

                if routine.inner:
                    tiles.feat[y, x] = routine.inner

        return tiles

    def _make_farm(self, prng: AleaPRNG, road: bool) -> TileGrid:
        """A field with an optional building; blocks on a road never get one."""
        for _ in range(3):
            prng.randint0(100)

        build_x = prng.rand_range(4, 11)
        build_y = prng.rand_range(3, 12)

        x1 = build_x - prng.randint1(3)
        x2 = build_x + prng.randint1(3)
        y1 = build_y - prng.randint1(2)
        y2 = build_y + prng.randint1(2)

        pattern = FARM_PATTERNS[prng.randint0(8)]
        if road and pattern > FarmPattern.DIRT:
            pattern = FarmPattern(prng.rand_range(1, 2))

        ys, xs = np.mgrid[:WILD_BLOCK_SIZE, :WILD_BLOCK_SIZE]

        if pattern in (FarmPattern.GRASS, FarmPattern.GRASS_BUILDING):
            grass = np.ones(xs.shape, dtype=bool)
        elif pattern == FarmPattern.STRIPES:
            grass = ys % 2 == 0
        else:
            grass = np.zeros(xs.shape, dtype=bool)

        tiles = TileGrid.filled(TerrainFeature.DIRT)
        tiles.feat[grass] = TerrainFeature.GRASS

        if pattern in (FarmPattern.DIRT_BUILDING, FarmPattern.GRASS_BUILDING):
            yard = (xs >= x1 - 1) & (xs <= x2 + 1) & (ys >= y1 - 1) & (ys <= y2 + 1)
            building = (xs >= x1) & (xs <= x2) & (ys >= y1) & (ys <= y2)
            tiles.feat[yard] = TerrainFeature.DIRT
            tiles.feat[building] = TerrainFeature.PERM_EXTRA

        return tiles

    def apply_road_overlay(self, tiles: TileGrid, roads: NeighborRoadInfo) -> bool:
        """
        Draw roads that join the neighbouring blocks' roads.

        Road levels are pinned at the block centre and at the edge or corner
        anchor facing each neighbour, then interpolated across the block.
        Tiles at or above ROAD_BORDER become road.

        Returns:
            True if the overlay was drawn
        """
        anchors = [GROUND_LEVEL] * 10

        if not roads.has_road_flag:
            # Only connect straight through, or cut corners between two roads
            sides = {d: roads.level(d) for d in ORTHOGONALS if roads.level(d) > GROUND_LEVEL}
            if not sides:
                return False

            raised = False
            for corner, (a, b) in CORNER_SIDES.items():
                if a in sides and b in sides:
                    anchors[corner] = max(sides[a], sides[b])
                    raised = True
            if not raised:
                return False
        else:
            for direction in range(1, 10):
                if roads.level(direction) > GROUND_LEVEL:
                    anchors[direction] = roads.level(direction)

        anchors[5] = roads.level(5)

        half = WILD_BLOCK_SIZE // 2
        plasma = PlasmaFractal()
        for direction in range(1, 10):
            plasma.set_value(
                (1 + KEYPAD_DDX[direction]) * half,
                (1 + KEYPAD_DDY[direction]) * half,
                anchors[direction],
            )
        plasma.smooth()

        road_mask = plasma.grid[:WILD_BLOCK_SIZE, :WILD_BLOCK_SIZE] >= ROAD_BORDER
        tiles.feat[road_mask] = TerrainFeature.ROAD
        tiles.info[road_mask] |= int(WildInfo.ROAD)
        return True

    def _overlay_field(self, prng: AleaPRNG) -> np.ndarray:
        return self._block_fractal(prng, OVERLAY_CORNER, OVERLAY_CENTER)

    def _apply_water_overlay(self, tiles: TileGrid, prng: AleaPRNG) -> None:
        field = self._overlay_field(prng)
        deep = field > DEEP_WATER_LEVEL
        shallow = (field > SHALLOW_WATER_LEVEL) & ~deep

        tiles.feat[deep] = TerrainFeature.DEEP_WATER
        tiles.feat[shallow] = TerrainFeature.SHAL_WATER
        tiles.info[deep | shallow] |= int(WildInfo.WATER)

    def _apply_hazard_overlay(
        self, tiles: TileGrid, prng: AleaPRNG, feat: TerrainFeature, flag: WildInfo
    ) -> None:
        field = self._overlay_field(prng)
        mask = field > HAZARD_LEVEL
        tiles.feat[mask] = feat
        tiles.info[mask] |= int(flag)


def pick_feat(features: Sequence[Tuple[int, int]], prob: int, prng: AleaPRNG) -> int:
    """
    Choose a feature weighted by closeness of prob to each threshold.

    Args:
        features: Four (feature, threshold) pairs; feature 0 is unused
        prob: Tile value in [0, 255]
        prng: Generator for the draw

    Returns:
        Feature id
    """
    chances = []
    for feat, threshold in features:
        if not feat:
            chances.append(0)
        elif threshold == prob:
            chances.append(MAX_CHANCE)
        else:
            chances.append(MAX_CHANCE // abs(threshold - prob))

    total = sum(chances)
    first = features[0][0] if features else 0
    if total == 0:
        return first or TerrainFeature.GRASS

    choice = int(prng.random() * total)
    for (feat, _), chance in zip(features[:-1], chances[:-1]):
        if choice < chance:
            return feat
        choice -= chance

    return features[-1][0] or first or TerrainFeature.GRASS
