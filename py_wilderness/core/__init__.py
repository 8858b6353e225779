"""
Core wilderness generation functionality.
"""

from .alea_prng import AleaPRNG
from .block_generator import NeighborRoadInfo, TileGrid, WildBlockGenerator, WildTile
from .decision_tree import WildDecisionTree
from .places import Place, PlaceType
from .plasma_fractal import PlasmaFractal
from .terrain_types import TerrainFeature, WildBlock, WildGenData, WildInfo, load_gen_data
from .wilderness_generator import WildernessGenerator, WildernessMap

__all__ = ['AleaPRNG', 'NeighborRoadInfo', 'TileGrid', 'WildBlockGenerator', 'WildTile',
           'WildDecisionTree', 'Place', 'PlaceType', 'PlasmaFractal', 'TerrainFeature',
           'WildBlock', 'WildGenData', 'WildInfo', 'load_gen_data',
           'WildernessGenerator', 'WildernessMap']
