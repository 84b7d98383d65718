"""
Configuration management for the daily edition service.

This module handles environment settings and the content source
definitions the edition is assembled from.
"""

from .config_manager import ConfigManager, DEFAULT_SOURCES_CONFIG, load_config_from_file, load_config_from_dict
from .settings import Settings, settings

__all__ = [
    'ConfigManager', 'DEFAULT_SOURCES_CONFIG', 'load_config_from_file', 'load_config_from_dict',
    'Settings', 'settings'
]
