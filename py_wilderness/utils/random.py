"""
Random number generation utilities.

Wilderness generation never touches Python's random or NumPy's random
module. Every consumer receives its own AleaPRNG instance so that block
synthesis stays reproducible no matter the order blocks are requested in.
"""

from typing import Optional, Union

from ..core.alea_prng import AleaPRNG

# Offsets used to spread block positions across the seed space
BLOCK_SEED_X_STRIDE = 1000
BLOCK_SEED_Y_STRIDE = 1000000


def create_prng(seed: Optional[Union[int, str]] = None) -> AleaPRNG:
    """
    Create a fresh Alea PRNG.

    Args:
        seed: Seed string or number; "default" when omitted

    Returns:
        AleaPRNG instance
    """
    return AleaPRNG("default" if seed is None else seed)


def block_seed(wild_seed: int, wild_x: int, wild_y: int) -> int:
    """Deterministic seed for the block at (wild_x, wild_y)."""
    return wild_seed + wild_x * BLOCK_SEED_X_STRIDE + wild_y * BLOCK_SEED_Y_STRIDE


def create_block_prng(wild_seed: int, wild_x: int, wild_y: int) -> AleaPRNG:
    """PRNG for synthesizing a single block's tiles."""
    return AleaPRNG(block_seed(wild_seed, wild_x, wild_y))
