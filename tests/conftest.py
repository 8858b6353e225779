"""Shared fixtures for wilderness tests."""

import pytest

from py_wilderness.core.terrain_types import WildGenData, load_gen_data


def make_gen_data(type_id, routine, data, chance=100, bounds=None, name=""):
    """Build a generation type covering the whole parameter cube by default."""
    box = {"hgtmin": 0, "hgtmax": 255, "popmin": 0, "popmax": 255, "lawmin": 0, "lawmax": 255}
    box.update(bounds or {})
    return WildGenData(
        id=type_id,
        name=name,
        bounds=box,
        gen_routine=routine,
        chance=chance,
        data=list(data),
    )


@pytest.fixture(scope="session")
def gen_data():
    """The packaged generation dataset."""
    return load_gen_data()
