"""
Utilities package for the world facts harvester.
"""

from .config import Config, load_config
from .logger import setup_logger, get_logger, log_stage
from .http_client import HTTPClient
from .exceptions import HarvestError

__all__ = [
    'Config',
    'load_config',
    'setup_logger',
    'get_logger',
    'log_stage',
    'HTTPClient',
    'HarvestError'
]
