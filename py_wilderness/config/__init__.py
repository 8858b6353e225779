"""
Configuration modules for wilderness generation.
"""

from .config import Settings, settings
from .generation_settings import MIN_WILD_SIZE, WILD_BLOCK_SIZE, WildernessOptions
from .log_config import configure_logging

__all__ = ['Settings', 'settings', 'WildernessOptions', 'WILD_BLOCK_SIZE',
           'MIN_WILD_SIZE', 'configure_logging']
