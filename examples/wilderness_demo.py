#!/usr/bin/env python3
"""
Simple demo script showing wilderness generation capabilities.
"""

import numpy as np
from py_wilderness.config import configure_logging, settings
from py_wilderness.core import WildBlockGenerator, WildernessGenerator, load_gen_data
from py_wilderness.core.terrain_types import WildInfo


def main():
    """Demonstrate macro map and block generation."""
    configure_logging(settings.log_level, settings.log_format)

    print("Py-Wilderness Generation Demo")
    print("=" * 40)

    gen_data = load_gen_data(settings.gen_data_path)
    names = {entry.id: entry.name for entry in gen_data}
    size = settings.default_wild_size
    seed = settings.default_seed if settings.default_seed is not None else "demo123"

    print(f"\nGenerating {size}x{size} wilderness (seed {seed!r})...")
    generator = WildernessGenerator(gen_data, seed=seed)
    wild_map = generator.generate(size)

    water = np.count_nonzero(wild_map.info & WildInfo.WATER)
    roads = np.count_nonzero(wild_map.info & (WildInfo.ROAD | WildInfo.TRACK))
    print(f"  Map seed: {wild_map.seed}")
    print(f"  Places: {len(wild_map.places)}")
    print(f"  Water blocks: {water}")
    print(f"  Road blocks: {roads}")
    print(f"  Starting position: {wild_map.get_starting_position()}")

    # Terrain distribution
    print("\n  Terrain distribution:")
    counts = wild_map.terrain_counts()
    most = max(counts.values())
    for type_id, count in sorted(counts.items(), key=lambda item: -item[1]):
        bar = '#' * int(count / most * 20)
        print(f"    {names.get(type_id, type_id)!s:>16}: {bar} ({count})")

    print("\n  Places:")
    for place in wild_map.places:
        print(f"    {place.name:<12} {place.type.value:<8} at ({place.x}, {place.y})")

    # Expand the block under the starting town
    x, y = wild_map.get_starting_position()
    block = wild_map.get_block(x, y)
    tiles = WildBlockGenerator(gen_data).generate_block(
        block, x, y, wild_map.seed, wild_map.neighbor_road_info(x, y)
    )
    print(f"\nBlock ({x}, {y}) - {names.get(block.wild, block.wild)}:")
    for row in tiles.feat:
        print("  " + " ".join(f"{int(v):3d}" for v in row))


if __name__ == "__main__":
    main()
