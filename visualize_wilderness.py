#!/usr/bin/env python3
"""
Visualize a generated wilderness.
Renders the parameter fields, the terrain classification with places and
roads, and the tiles of one block.
"""

import argparse

import matplotlib.pyplot as plt
import numpy as np

from py_wilderness.config import configure_logging, settings
from py_wilderness.core import WildBlockGenerator, WildernessGenerator, load_gen_data
from py_wilderness.core.places import PlaceType
from py_wilderness.core.terrain_types import WildInfo


def visualize_wilderness(size=64, seed="123456", block=None, output="wilderness.png"):
    """
    Generate and visualize a wilderness.

    Args:
        size: Blocks per side
        seed: Random seed
        block: (x, y) block to expand, the starting town when None
        output: Output image path
    """
    gen_data = load_gen_data(settings.gen_data_path)

    print(f"Generating {size}x{size} wilderness...")
    wild_map = WildernessGenerator(gen_data, seed=seed).generate(size)

    fig, axes = plt.subplots(2, 3, figsize=(18, 12))

    for ax, field, title, cmap in (
        (axes[0, 0], wild_map.hgt_map, "Height", "terrain"),
        (axes[0, 1], wild_map.pop_map, "Population", "viridis"),
        (axes[0, 2], wild_map.law_map, "Law", "magma"),
    ):
        im = ax.imshow(field, cmap=cmap, vmin=0, vmax=255)
        ax.set_title(title)
        plt.colorbar(im, ax=ax, fraction=0.046)

    # Terrain with water, roads and places
    ax = axes[1, 0]
    ax.imshow(wild_map.wild, cmap="tab20", interpolation="nearest")
    water = np.ma.masked_where(~(wild_map.info & WildInfo.WATER).astype(bool), wild_map.info)
    ax.imshow(water, cmap="Blues", alpha=0.6, interpolation="nearest")
    road_y, road_x = np.nonzero(wild_map.info & (WildInfo.ROAD | WildInfo.TRACK))
    ax.scatter(road_x, road_y, s=4, c="saddlebrown", marker="s")
    for place in wild_map.places:
        if place.type == PlaceType.TOWN:
            ax.add_patch(
                plt.Rectangle(
                    (place.x - 0.5, place.y - 0.5), place.xsize, place.ysize,
                    fill=False, edgecolor="red", linewidth=1.5,
                )
            )
        else:
            ax.plot(place.x, place.y, "k^", markersize=5)
    ax.set_title("Terrain, roads and places")

    ax = axes[1, 1]
    im = ax.imshow(wild_map.mon_gen, cmap="Reds")
    ax.set_title("Monster level")
    plt.colorbar(im, ax=ax, fraction=0.046)

    # One block's tiles
    bx, by = block if block is not None else wild_map.get_starting_position()
    tiles = WildBlockGenerator(gen_data).generate_block(
        wild_map.get_block(bx, by), bx, by, wild_map.seed, wild_map.neighbor_road_info(bx, by)
    )
    ax = axes[1, 2]
    ax.imshow(tiles.feat, cmap="tab20", interpolation="nearest")
    ax.set_title(f"Block ({bx}, {by}) tiles")

    plt.tight_layout()
    plt.savefig(output, dpi=120)
    print(f"Saved visualization to {output}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Visualize a generated wilderness")
    parser.add_argument("--size", type=int, default=settings.default_wild_size)
    parser.add_argument("--seed", default="123456")
    parser.add_argument("--block", type=int, nargs=2, default=None)
    parser.add_argument("--output", default="wilderness.png")
    args = parser.parse_args()

    configure_logging(settings.log_level, settings.log_format)
    visualize_wilderness(args.size, args.seed, args.block, args.output)
