"""Tests for the wilderness macro map generator."""

import numpy as np
import pytest

from py_wilderness.config.generation_settings import WildernessOptions
from py_wilderness.core.block_generator import NeighborRoadInfo
from py_wilderness.core.places import PlaceType
from py_wilderness.core.terrain_types import GROUND_LEVEL, ROAD_LEVEL, TRACK_LEVEL, WildInfo
from py_wilderness.core.wilderness_generator import (
    WildernessGenerator,
    WildernessMap,
    block_to_tile,
    normalize_field,
    tile_to_block,
)

from conftest import make_gen_data


@pytest.fixture(scope="module")
def small_map(gen_data):
    return WildernessGenerator(gen_data, seed=42).generate(8)


@pytest.fixture(scope="module")
def large_map(gen_data):
    return WildernessGenerator(gen_data, seed="large").generate(64)


@pytest.fixture(scope="module")
def wild_map(gen_data):
    return WildernessGenerator(gen_data, seed="accessors").generate(32)


class TestNormalizeField:
    """Test scalar field normalization."""

    def test_stretches_to_full_range(self):
        field = np.array([[10, 20], [30, 40]])
        np.testing.assert_array_equal(normalize_field(field), [[0, 85], [170, 255]])

    def test_negative_values(self):
        result = normalize_field(np.array([-500, 0, 500]))
        assert result.min() == 0
        assert result.max() == 255
        assert result[1] == 127

    def test_constant_field_unchanged(self):
        field = np.full((4, 4), 77)
        np.testing.assert_array_equal(normalize_field(field), field)


class TestCoordinateHelpers:
    """Test block and tile coordinate conversion."""

    def test_block_to_tile(self):
        assert block_to_tile(0, 0) == (0, 0)
        assert block_to_tile(3, 2) == (48, 32)

    def test_tile_to_block(self):
        assert tile_to_block(47, 32) == (2, 2)
        assert tile_to_block(48, 15) == (3, 0)


class TestWildernessGenerator:
    """Test full macro map generation."""

    def test_small_map_scenario(self, small_map, gen_data):
        ids = {entry.id for entry in gen_data}
        assert isinstance(small_map, WildernessMap)
        assert small_map.size == 8
        assert small_map.wild.shape == (8, 8)
        assert set(np.unique(small_map.wild).tolist()) <= ids
        assert 0 <= small_map.seed < 1000000
        assert small_map.get_place("starting_town") is not None
        assert small_map.info.dtype == np.uint8

    def test_small_map_starting_town_at_centre(self, small_map):
        """No room for a town footprint, so the town falls back to the centre."""
        assert small_map.get_starting_position() == (4, 4)
        assert all(p.type == PlaceType.DUNGEON for p in small_map.places[1:])

    def test_deterministic(self, gen_data):
        a = WildernessGenerator(gen_data, seed=42).generate(16)
        b = WildernessGenerator(gen_data, seed=42).generate(16)
        assert a.seed == b.seed
        assert a.places == b.places
        for name in ("wild", "place", "info", "mon_gen", "mon_prob", "hgt_map"):
            np.testing.assert_array_equal(getattr(a, name), getattr(b, name))

    def test_different_seeds_differ(self, gen_data):
        a = WildernessGenerator(gen_data, seed=1).generate(16)
        b = WildernessGenerator(gen_data, seed=2).generate(16)
        assert not np.array_equal(a.hgt_map, b.hgt_map)

    def test_fields_normalized(self, large_map):
        for field in (large_map.hgt_map, large_map.pop_map, large_map.law_map):
            assert field.shape == (64, 64)
            assert field.min() >= 0
            assert field.max() <= 255
        assert large_map.hgt_map.min() == 0
        assert large_map.hgt_map.max() == 255

    def test_nobody_lives_at_sea(self, large_map):
        ocean = large_map.hgt_map < 64
        assert (large_map.pop_map[ocean] == 0).all()
        assert (large_map.law_map[ocean] <= 127).all()

    def test_terrain_matches_parameters(self, large_map, gen_data):
        by_id = {entry.id: entry for entry in gen_data}
        for x, y, block in large_map.iter_blocks():
            bounds = by_id[block.wild].bounds
            assert bounds.contains(
                int(large_map.hgt_map[y, x]),
                int(large_map.pop_map[y, x]),
                int(large_map.law_map[y, x]),
            )

    def test_monster_levels(self, large_map):
        lawless = 255 - large_map.law_map
        settled = large_map.place > 0
        expected_gen = np.where(settled, (lawless // 4) // 4, lawless // 4)
        expected_prob = np.where(settled, (lawless // 16) // 4, lawless // 16)
        np.testing.assert_array_equal(large_map.mon_gen, expected_gen)
        np.testing.assert_array_equal(large_map.mon_prob, expected_prob)

    def test_same_type_spacing(self, large_map):
        options = WildernessOptions()
        for place_type, min_dist in (
            (PlaceType.TOWN, options.min_dist_town),
            (PlaceType.DUNGEON, options.min_dist_dungeon),
        ):
            same = [p for p in large_map.places if p.type == place_type]
            for i, a in enumerate(same):
                for b in same[i + 1:]:
                    assert abs(a.x - b.x) + abs(a.y - b.y) >= min_dist

    def test_roads_avoid_water(self, large_map):
        water = (large_map.info & WildInfo.WATER).astype(bool)
        roads = (large_map.info & (WildInfo.ROAD | WildInfo.TRACK)).astype(bool)
        assert not (water & roads).any()
        assert roads.any()
        assert large_map.info.dtype == np.uint8

    def test_place_numbers(self, large_map):
        assert large_map.place.max() <= len(large_map.places)
        last = large_map.places[-1]
        assert large_map.place[last.y, last.x] == len(large_map.places)
        assert large_map.get_place_at(last.x, last.y) == last

    def test_map_is_read_only(self, small_map):
        for array in (small_map.wild, small_map.info, small_map.place, small_map.hgt_map):
            with pytest.raises(ValueError):
                array[0, 0] = 1
        with pytest.raises(AttributeError):
            small_map.seed = 5

    def test_size_too_small(self, gen_data):
        with pytest.raises(ValueError):
            WildernessGenerator(gen_data, seed=1).generate(7)

    def test_default_size_from_options(self, gen_data):
        options = WildernessOptions(size=16, num_towns=3, num_dungeons=3)
        wild_map = WildernessGenerator(gen_data, seed=3, options=options).generate()
        assert wild_map.size == 16
        assert len(wild_map.places) <= 6

    def test_uncovered_dataset_falls_back(self):
        gen_data = [
            make_gen_data(5, 2, [89], bounds={"hgtmin": 0, "hgtmax": 10}),
            make_gen_data(6, 2, [88], bounds={"hgtmin": 250, "hgtmax": 255}),
        ]
        generator = WildernessGenerator(gen_data, seed=9)
        wild_map = generator.generate(8)
        assert set(np.unique(wild_map.wild).tolist()) <= {5, 6}
        assert generator.decision_tree.anomalies > 0


class TestWildernessMap:
    """Test map accessors."""

    def test_get_block(self, wild_map):
        block = wild_map.get_block(3, 4)
        assert block.wild == wild_map.wild[4, 3]
        assert block.info == wild_map.info[4, 3]
        assert wild_map.get_block(-1, 0) is None
        assert wild_map.get_block(0, 32) is None

    def test_get_place(self, wild_map):
        town = wild_map.get_place("starting_town")
        assert town.name == "The Town"
        assert wild_map.get_starting_position() == (town.x, town.y)
        assert wild_map.get_place("missing") is None

    def test_neighbor_road_info(self, wild_map):
        ys, xs = np.nonzero(wild_map.info & (WildInfo.ROAD | WildInfo.TRACK))
        x, y = int(xs[0]), int(ys[0])
        roads = wild_map.neighbor_road_info(x, y)

        assert isinstance(roads, NeighborRoadInfo)
        assert roads.has_road_flag
        assert roads.level(5) in (ROAD_LEVEL, TRACK_LEVEL)
        assert len(roads.levels) == 9

    def test_neighbor_road_info_off_map(self, wild_map):
        roads = wild_map.neighbor_road_info(0, 0)
        # South-west, west, north-west, north and north-east are off the map
        for direction in (1, 4, 7, 8, 9):
            assert roads.level(direction) == GROUND_LEVEL

    def test_dungeon_entrances(self, wild_map):
        entrances = wild_map.dungeon_entrances()
        dungeons = [p for p in wild_map.places if p.type == PlaceType.DUNGEON]
        assert len(entrances) == len(dungeons)
        for place, (tile_x, tile_y) in entrances:
            assert (tile_x, tile_y) == (place.x * 16 + 8, place.y * 16 + 8)

    def test_terrain_counts(self, wild_map):
        counts = wild_map.terrain_counts()
        assert sum(counts.values()) == 32 * 32
        assert all(count > 0 for count in counts.values())

    def test_iter_blocks_row_major(self, wild_map):
        coords = [(x, y) for x, y, _ in wild_map.iter_blocks()]
        assert coords[:2] == [(0, 0), (1, 0)]
        assert len(coords) == 32 * 32
