"""
Generation settings for the wilderness pipeline.

These are the tunable constants of the macro map generator. The defaults
reproduce the classic wilderness layout: a quarter of the map is sea,
sixteen river sources, four lakes and twenty towns and dungeons each.
"""

from pydantic import BaseModel, ConfigDict, Field


# Each wilderness block is WILD_BLOCK_SIZE x WILD_BLOCK_SIZE tiles
WILD_BLOCK_SIZE = 16

# Smallest map the pipeline accepts (one town footprint)
MIN_WILD_SIZE = 8


class WildernessOptions(BaseModel):
    """Wilderness generation options."""

    model_config = ConfigDict(frozen=True)

    size: int = Field(
        default=64, ge=MIN_WILD_SIZE, description="Map size in blocks per side"
    )
    town_size: int = Field(default=8, ge=1, description="Town footprint in blocks")
    sea_fraction: int = Field(
        default=4, ge=1, description="1/sea_fraction of the height range is sea"
    )

    # Hydrology
    river_num: int = Field(
        default=4, ge=0, description="Square root of the number of river sources"
    )
    river_source_height: int = Field(
        default=180, description="Minimum height for a river source"
    )
    lake_num: int = Field(default=4, ge=0, description="Number of lakes to try")

    # Places
    num_towns: int = Field(
        default=20, ge=1, description="Number of towns, including the starting town"
    )
    num_dungeons: int = Field(default=20, ge=0, description="Number of dungeons")
    min_dist_town: int = Field(
        default=10, description="Minimum Manhattan distance between towns"
    )
    min_dist_dungeon: int = Field(
        default=8, description="Minimum Manhattan distance between dungeons"
    )
    placement_attempts_per_place: int = Field(
        default=50, ge=1, description="Rejection-sampling budget per requested place"
    )
    starting_town_population: int = Field(
        default=192, description="Population value of the starting town"
    )

    # Roads
    road_dist: int = Field(
        default=30, description="Preferred maximum distance for a road connection"
    )
    road_subdivide_dist: int = Field(
        default=6, ge=1, description="Road segments longer than this are subdivided"
    )
    road_perturbation: float = Field(
        default=0.3, ge=0.0, description="Midpoint jitter as a fraction of segment length"
    )
    road_law_pop_threshold: int = Field(
        default=256, description="law + population needed for a paved road"
    )

    @property
    def sea_level(self) -> float:
        """Height below which a block is sea."""
        return 256 / self.sea_fraction

    @property
    def river_count(self) -> int:
        return self.river_num * self.river_num
