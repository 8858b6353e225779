"""Tests for terrain constants, generation types and dataset loading."""

import json

import pytest

from py_wilderness.core.terrain_types import (
    GROUND_LEVEL,
    ROAD_BORDER,
    ROAD_LEVEL,
    TRACK_LEVEL,
    FarmPlot,
    FractalTerrain,
    OverlayCircle,
    ProbabilityTerrain,
    WildBlock,
    WildBoundBox,
    WildGenData,
    WildInfo,
    load_gen_data,
    parse_routine,
    road_level,
)


class TestConstants:
    """Test level constants and flags."""

    def test_level_ordering(self):
        assert ROAD_LEVEL == 2400
        assert TRACK_LEVEL == 2240
        assert ROAD_BORDER == 1920
        assert GROUND_LEVEL == 1600
        assert ROAD_LEVEL > TRACK_LEVEL > ROAD_BORDER > GROUND_LEVEL

    def test_road_level_from_flags(self):
        assert road_level(WildInfo.ROAD) == ROAD_LEVEL
        assert road_level(WildInfo.TRACK) == TRACK_LEVEL
        assert road_level(WildInfo.ROAD | WildInfo.TRACK) == ROAD_LEVEL
        assert road_level(WildInfo.WATER) == GROUND_LEVEL
        assert road_level(0) == GROUND_LEVEL

    def test_block_flags(self):
        block = WildBlock(wild=3, info=WildInfo.WATER | WildInfo.ROAD)
        assert block.info & WildInfo.WATER
        assert not block.info & WildInfo.TRACK
        assert road_level(block.info) == ROAD_LEVEL
        assert block.place == 0


class TestBoundBox:
    """Test parameter space boxes."""

    def test_contains_is_inclusive(self):
        box = WildBoundBox(hgtmin=10, hgtmax=20, popmin=0, popmax=255, lawmin=5, lawmax=5)
        assert box.contains(10, 0, 5)
        assert box.contains(20, 255, 5)
        assert not box.contains(21, 0, 5)
        assert not box.contains(15, 0, 6)

    def test_min_above_max_rejected(self):
        with pytest.raises(ValueError):
            WildBoundBox(hgtmin=30, hgtmax=20, popmin=0, popmax=255, lawmin=0, lawmax=255)

    def test_out_of_range_rejected(self):
        with pytest.raises(ValueError):
            WildBoundBox(hgtmin=0, hgtmax=256, popmin=0, popmax=255, lawmin=0, lawmax=255)


class TestRoutines:
    """Test routine variant parsing."""

    def test_fractal_terrain(self):
        routine = parse_routine(1, (89, 100, 99, 170, 0, 0, 0, 0))
        assert isinstance(routine, FractalTerrain)
        assert routine.features == ((89, 100), (99, 170), (0, 0), (0, 0))

    def test_probability_terrain(self):
        routine = parse_routine(2, (90, 8, 83, 0, 0, 0, 0, 0))
        assert isinstance(routine, ProbabilityTerrain)
        assert routine.steps[0] == (90, 8)
        assert routine.steps[1] == (83, 0)

    def test_overlay_circle(self):
        routine = parse_routine(3, (10, 89, 84, 83, 0, 0, 0, 0))
        assert routine == OverlayCircle(base_type=10, outer=89, middle=84, inner=83)

    def test_farm(self):
        assert isinstance(parse_routine(4, (0,) * 8), FarmPlot)

    def test_unknown_routine(self):
        assert parse_routine(9, (0,) * 8) is None


class TestWildGenData:
    """Test generation type records."""

    def test_data_is_padded(self):
        entry = WildGenData(
            id=1,
            bounds={"hgtmin": 0, "hgtmax": 255, "popmin": 0, "popmax": 255,
                    "lawmin": 0, "lawmax": 255},
            gen_routine=2,
            data=[92, 0],
        )
        assert entry.data == (92, 0, 0, 0, 0, 0, 0, 0)
        assert isinstance(entry.routine, ProbabilityTerrain)

    def test_too_much_data_rejected(self):
        with pytest.raises(ValueError):
            WildGenData(
                id=1,
                bounds={"hgtmin": 0, "hgtmax": 255, "popmin": 0, "popmax": 255,
                        "lawmin": 0, "lawmax": 255},
                gen_routine=1,
                data=list(range(9)),
            )

    def test_negative_chance_rejected(self):
        with pytest.raises(ValueError):
            WildGenData(
                id=1,
                bounds={"hgtmin": 0, "hgtmax": 255, "popmin": 0, "popmax": 255,
                        "lawmin": 0, "lawmax": 255},
                gen_routine=1,
                chance=-1,
            )


class TestLoadGenData:
    """Test dataset loading."""

    def test_packaged_dataset(self, gen_data):
        assert len(gen_data) == 18
        ids = [entry.id for entry in gen_data]
        assert len(set(ids)) == len(ids)
        assert gen_data[0].name == "Ocean"
        assert all(entry.routine is not None for entry in gen_data)

    def test_load_from_path(self, tmp_path):
        path = tmp_path / "w_info.json"
        path.write_text(json.dumps([
            {
                "id": 7,
                "name": "Plain",
                "bounds": {"hgtmin": 0, "hgtmax": 255, "popmin": 0, "popmax": 255,
                           "lawmin": 0, "lawmax": 255},
                "gen_routine": 2,
                "chance": 1,
                "data": [89],
            }
        ]))
        gen_data = load_gen_data(path)
        assert len(gen_data) == 1
        assert gen_data[0].id == 7
        assert gen_data[0].data[0] == 89

    def test_empty_dataset(self, tmp_path):
        path = tmp_path / "empty.json"
        path.write_text("[]")
        assert load_gen_data(str(path)) == []
