"""
Procedural wilderness generation for tile-based roguelikes.
"""

__version__ = "0.1.0"
