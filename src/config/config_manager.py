"""
Configuration manager for loading and managing content source configurations.
"""

import yaml
import json
import logging
from typing import Any, Optional
from pathlib import Path

from src.sources import SourceConfig
from src.sources.factory import EDITION_SOURCES, SourceFactory

logger = logging.getLogger(__name__)

BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
)

# Sources every edition needs; publishing with one missing is a config error
REQUIRED_SOURCES = EDITION_SOURCES

# Built-in definitions, used when no configuration file is present
DEFAULT_SOURCES_CONFIG: dict[str, Any] = {
    'global': {
        'default_timeout': 8.0
    },
    'sources': {
        'poem': {
            'adapter_class': 'PoemAdapter',
            'url': 'https://poetrydb.org/linecount/{line_count}',
            'adapter_config': {'min_lines': 3, 'max_lines': 13}
        },
        'joke': {
            'adapter_class': 'JokeAdapter',
            'url': 'https://v2.jokeapi.dev/joke/Any?blacklistFlags=nsfw,religious,political,racist,sexist,explicit'
        },
        'activity': {
            'adapter_class': 'ActivityAdapter',
            'url': 'https://bored-api.appbrewery.com/random'
        },
        'cat_fact': {
            'adapter_class': 'CatFactAdapter',
            'url': 'https://catfact.ninja/fact'
        },
        'dog_fact': {
            'adapter_class': 'DogFactAdapter',
            'url': 'https://dogapi.dog/api/v2/facts?limit=1'
        },
        'trivia_fact': {
            'adapter_class': 'TriviaFactAdapter',
            'url': 'https://uselessfacts.jsph.pl/api/v2/facts/random'
        },
        'comic': {
            'source_type': 'html',
            'adapter_class': 'ComicAdapter',
            'url': 'https://www.gocomics.com',
            'headers': {'User-Agent': BROWSER_USER_AGENT},
            'adapter_config': {
                'sources': [
                    'https://www.gocomics.com/garfield',
                    'https://www.gocomics.com/calvinandhobbes',
                    'https://www.gocomics.com/peanuts',
                    'https://www.gocomics.com/bc'
                ]
            }
        }
    }
}


class ConfigManager:
    """Manager for loading and validating source configurations"""

    def __init__(self):
        self.sources: dict[str, SourceConfig] = {}
        self.global_config: dict[str, Any] = {}

    def load_from_file(self, file_path: str) -> bool:
        """Load configuration from a YAML or JSON file"""
        try:
            path = Path(file_path)
            if not path.exists():
                logger.error(f"Configuration file not found: {file_path}")
                return False

            with open(path, 'r') as f:
                if path.suffix.lower() in ['.yaml', '.yml']:
                    config_data = yaml.safe_load(f)
                elif path.suffix.lower() == '.json':
                    config_data = json.load(f)
                else:
                    logger.error(f"Unsupported configuration file format: {path.suffix}")
                    return False

            return self.load_from_dict(config_data or {})

        except Exception as e:
            logger.error(f"Error loading configuration from {file_path}: {e}")
            return False

    def load_from_dict(self, config_data: dict[str, Any]) -> bool:
        """Load configuration from a dictionary"""
        try:
            # Load global configuration
            self.global_config = config_data.get('global') or {}

            # Load source configurations
            sources_data = config_data.get('sources') or {}
            self.sources.clear()

            for source_name, source_data in sources_data.items():
                try:
                    config = self._create_source_config(source_name, source_data or {})
                    self.sources[source_name] = config
                    logger.info(f"Loaded source configuration: {source_name}")

                except Exception as e:
                    logger.error(f"Error loading source {source_name}: {e}")
                    continue

            logger.info(f"Loaded {len(self.sources)} source configurations")
            return True

        except Exception as e:
            logger.error(f"Error loading configuration: {e}")
            return False

    def load_defaults(self) -> bool:
        """Load the built-in source definitions"""
        return self.load_from_dict(DEFAULT_SOURCES_CONFIG)

    def _create_source_config(self, name: str, data: dict[str, Any]) -> SourceConfig:
        """Create a SourceConfig from dictionary data"""
        default_timeout = self.global_config.get('default_timeout', 8.0)
        return SourceConfig(
            name=name,
            enabled=data.get('enabled', True),
            source_type=data.get('source_type', 'json_api'),
            adapter_class=data.get('adapter_class', ''),
            url=data.get('url', ''),
            timeout=float(data.get('timeout', default_timeout)),
            headers=data.get('headers'),
            adapter_config=data.get('adapter_config')
        )

    def get_source_configs(self) -> list[SourceConfig]:
        """Get all source configurations"""
        return list(self.sources.values())

    def get_enabled_source_configs(self) -> list[SourceConfig]:
        """Get enabled source configurations"""
        return [config for config in self.sources.values() if config.enabled]

    def get_source_config(self, name: str) -> Optional[SourceConfig]:
        """Get a specific source configuration"""
        return self.sources.get(name)

    def remove_source_config(self, name: str) -> bool:
        """Remove a source configuration"""
        if name in self.sources:
            del self.sources[name]
            logger.info(f"Removed source configuration: {name}")
            return True
        return False

    def validate_configs(self) -> list[str]:
        """Validate all source configurations and return error messages"""
        errors = []
        known_adapters = SourceFactory().known_adapters()

        for name, config in self.sources.items():
            if not config.url:
                errors.append(f"Source {name}: Missing URL")

            if config.timeout <= 0:
                errors.append(f"Source {name}: Timeout must be positive ({config.timeout}s)")

            if not config.adapter_class:
                errors.append(f"Source {name}: Missing adapter class")
            elif config.adapter_class not in known_adapters:
                errors.append(f"Source {name}: Unknown adapter class {config.adapter_class}")

        for name in REQUIRED_SOURCES:
            if name not in self.sources:
                errors.append(f"Source {name}: Missing required source")

        return errors


def load_config_from_file(file_path: str) -> ConfigManager:
    """Convenience function to load configuration from file"""
    manager = ConfigManager()
    if not manager.load_from_file(file_path):
        raise ValueError(f"Failed to load configuration from {file_path}")
    return manager


def load_config_from_dict(config_data: dict[str, Any]) -> ConfigManager:
    """Convenience function to load configuration from dictionary"""
    manager = ConfigManager()
    if not manager.load_from_dict(config_data):
        raise ValueError("Failed to load configuration from dictionary")
    return manager
