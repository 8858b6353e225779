"""
Wilderness terrain types, flags and the generation-type dataset.

This module holds:
- Block info flags and road level constants
- The terrain feature id catalog used by generated tiles
- The w_info generation-type records (bounding box, chance, routine, data)
- The four generation routines as typed variants
"""

import json
from dataclasses import dataclass
from enum import IntEnum, IntFlag
from pathlib import Path
from typing import List, Optional, Tuple, Union

import structlog
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..config.generation_settings import WILD_BLOCK_SIZE

logger = structlog.get_logger()

DEFAULT_GEN_DATA_PATH = Path(__file__).resolve().parent.parent / "data" / "w_info.json"

# Number of extra parameters every generation type carries
GEN_DATA_PARAMS = 8


class WildInfo(IntFlag):
    """Per-block info flags."""

    NONE = 0
    WATER = 0x01
    ROAD = 0x02
    TRACK = 0x04
    LAVA = 0x08
    ACID = 0x10


HAZARD_FLAGS = WildInfo.WATER | WildInfo.LAVA | WildInfo.ACID

# Road levels define the width of the path drawn through a block
ROAD_LEVEL = WILD_BLOCK_SIZE * 150
TRACK_LEVEL = WILD_BLOCK_SIZE * 140
ROAD_BORDER = WILD_BLOCK_SIZE * 120
GROUND_LEVEL = WILD_BLOCK_SIZE * 100

# Keypad direction offsets, indexed 1-9 (5 is the block itself, 8 is north)
KEYPAD_DDX = (0, -1, 0, 1, -1, 0, 1, -1, 0, 1)
KEYPAD_DDY = (0, 1, 1, 1, 0, 0, 0, -1, -1, -1)


def road_level(info: int) -> int:
    """Road level for a block with the given info flags."""
    if info & WildInfo.ROAD:
        return ROAD_LEVEL
    if info & WildInfo.TRACK:
        return TRACK_LEVEL
    return GROUND_LEVEL


@dataclass(frozen=True)
class WildBlock:
    """One macro block of the wilderness."""

    wild: int
    place: int = 0
    info: int = 0
    mon_gen: int = 0
    mon_prob: int = 0


class TerrainFeature(IntEnum):
    """Terrain feature ids understood by the surrounding terrain catalog."""

    FLOOR = 1
    PERM_EXTRA = 60
    DEEP_WATER = 83
    SHAL_WATER = 84
    DEEP_LAVA = 85
    SHAL_LAVA = 86
    DIRT = 88
    GRASS = 89
    OCEAN_WATER = 90
    PEBBLES = 91
    SAND = 92
    DEEP_ACID = 93
    SHAL_ACID = 94
    SNOW = 95
    TREES = 96
    MOUNTAIN = 97
    PINE_TREES = 98
    BUSH = 99
    SWAMP = 100
    ROAD = 148


class TownMonstType(IntEnum):
    """Kind of monster population living in a town."""

    NONE = 0
    VILLAGER = 1
    ELVES = 2
    DWARF = 3
    LIZARD = 4
    MONST = 5
    ABANDONED = 6


class WildBoundBox(BaseModel):
    """Inclusive axis-aligned box in (height, population, law) space."""

    model_config = ConfigDict(frozen=True)

    hgtmin: int = Field(ge=0, le=255)
    hgtmax: int = Field(ge=0, le=255)
    popmin: int = Field(ge=0, le=255)
    popmax: int = Field(ge=0, le=255)
    lawmin: int = Field(ge=0, le=255)
    lawmax: int = Field(ge=0, le=255)

    @model_validator(mode="after")
    def _check_order(self):
        if self.hgtmin > self.hgtmax or self.popmin > self.popmax or self.lawmin > self.lawmax:
            raise ValueError("Bound box minimum exceeds maximum")
        return self

    def contains(self, hgt: int, pop: int, law: int) -> bool:
        return (
            self.hgtmin <= hgt <= self.hgtmax
            and self.popmin <= pop <= self.popmax
            and self.lawmin <= law <= self.lawmax
        )


# Generation routine variants


@dataclass(frozen=True)
class FractalTerrain:
    """Routine 1: fractal height mapped onto up to four (feature, threshold) pairs."""

    features: Tuple[Tuple[int, int], ...]


@dataclass(frozen=True)
class ProbabilityTerrain:
    """Routine 2: chained (feature, chance) pairs walked per tile."""

    steps: Tuple[Tuple[int, int], ...]


@dataclass(frozen=True)
class OverlayCircle:
    """Routine 3: base terrain with up to three concentric rings on top."""

    base_type: int
    outer: int
    middle: int
    inner: int


@dataclass(frozen=True)
class FarmPlot:
    """Routine 4: a field, optionally with a building."""


GenRoutine = Union[FractalTerrain, ProbabilityTerrain, OverlayCircle, FarmPlot]


def parse_routine(routine_id: int, data: Tuple[int, ...]) -> Optional[GenRoutine]:
    """
    Build the routine variant for a generation type.

    Args:
        routine_id: Routine number from the dataset (1-4)
        data: The eight routine parameters

    Returns:
        The routine variant, or None for an unknown routine id
    """
    if routine_id == 1:
        return FractalTerrain(
            features=tuple((data[i], data[i + 1]) for i in range(0, GEN_DATA_PARAMS, 2))
        )
    if routine_id == 2:
        return ProbabilityTerrain(
            steps=tuple((data[i], data[i + 1]) for i in range(0, GEN_DATA_PARAMS, 2))
        )
    if routine_id == 3:
        return OverlayCircle(base_type=data[0], outer=data[1], middle=data[2], inner=data[3])
    if routine_id == 4:
        return FarmPlot()
    return None


class WildGenData(BaseModel):
    """A wilderness generation type (one w_info record)."""

    model_config = ConfigDict(frozen=True)

    id: int = Field(description="Unique identifier")
    name: str = Field(default="", description="Description for debugging")
    map_feature: int = Field(default=0, description="Overhead map feature id")
    bounds: WildBoundBox = Field(description="Parameter space bounds")
    gen_routine: int = Field(description="Generation routine number (1-4)")
    chance: int = Field(default=0, ge=0, description="Relative probability weight")
    rough_type: Tuple[str, ...] = Field(
        default=(), description="Monster terrain flags"
    )
    data: Tuple[int, ...] = Field(
        default=(0,) * GEN_DATA_PARAMS, description="Routine parameters"
    )

    @field_validator("data", mode="before")
    @classmethod
    def _pad_data(cls, value):
        values = list(value or [])
        if len(values) > GEN_DATA_PARAMS:
            raise ValueError(f"At most {GEN_DATA_PARAMS} routine parameters allowed")
        return tuple(values + [0] * (GEN_DATA_PARAMS - len(values)))

    @property
    def routine(self) -> Optional[GenRoutine]:
        return parse_routine(self.gen_routine, self.data)


def load_gen_data(path: Optional[Union[str, Path]] = None) -> List[WildGenData]:
    """
    Load the generation-type dataset from a JSON file.

    Args:
        path: JSON file with a list of records; the packaged w_info.json
              when omitted

    Returns:
        List of WildGenData in file order
    """
    source = Path(path) if path is not None else DEFAULT_GEN_DATA_PATH
    with open(source, encoding="utf-8") as f:
        records = json.load(f)

    gen_data = [WildGenData.model_validate(record) for record in records]

    if not gen_data:
        logger.warning("Generation dataset is empty", path=str(source))
    else:
        logger.debug("Loaded generation dataset", path=str(source), types=len(gen_data))

    return gen_data
