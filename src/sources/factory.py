"""
Source factory and manager for creating and managing content sources.

This module provides the factory pattern for creating UniversalContentSource
instances and a manager that fans out to all of them for one edition.
"""

import asyncio
import logging
from typing import Type, Any, Optional

from src.sources import UniversalContentSource, SourceConfig, SourceAdapter, DataFetcher, ContentResult
from src.sources.fetchers import JSONAPIFetcher, HTMLPageFetcher, MockFetcher
from src.sources.adapters import (
    PoemAdapter, JokeAdapter, ActivityAdapter,
    CatFactAdapter, DogFactAdapter, TriviaFactAdapter, ComicAdapter
)

logger = logging.getLogger(__name__)

# Content sources every edition is built from, in edition field order
EDITION_SOURCES = ('poem', 'joke', 'activity', 'cat_fact', 'dog_fact', 'trivia_fact', 'comic')


class SourceFactory:
    """Factory for creating UniversalContentSource instances"""

    def __init__(self):
        self._fetcher_registry: dict[str, Type[DataFetcher]] = {
            'json_api': JSONAPIFetcher,
            'html': HTMLPageFetcher,
            'mock': MockFetcher
        }

        self._adapter_registry: dict[str, Type[SourceAdapter]] = {
            'PoemAdapter': PoemAdapter,
            'JokeAdapter': JokeAdapter,
            'ActivityAdapter': ActivityAdapter,
            'CatFactAdapter': CatFactAdapter,
            'DogFactAdapter': DogFactAdapter,
            'TriviaFactAdapter': TriviaFactAdapter,
            'ComicAdapter': ComicAdapter
        }

    def create_source(self, config: SourceConfig) -> UniversalContentSource:
        """Create a UniversalContentSource from configuration"""
        try:
            # Create fetcher
            fetcher_class = self._fetcher_registry.get(config.source_type)
            if not fetcher_class:
                raise ValueError(f"Unknown source type: {config.source_type}")

            if config.source_type == 'mock':
                # MockFetcher serves canned data from the adapter config
                fetcher = fetcher_class(config.adapter_config.get('mock_data'))
            else:
                fetcher = fetcher_class(timeout=config.timeout)

            # Create adapter
            adapter_class = self._adapter_registry.get(config.adapter_class)
            if not adapter_class:
                raise ValueError(f"Unknown adapter class: {config.adapter_class}")

            adapter_config = config.adapter_config or {}
            if config.adapter_class == 'PoemAdapter':
                adapter = adapter_class(
                    min_lines=adapter_config.get('min_lines', 3),
                    max_lines=adapter_config.get('max_lines', 13)
                )
            elif config.adapter_class == 'ComicAdapter':
                kwargs = {'sources': adapter_config.get('sources', [])}
                if adapter_config.get('selector'):
                    kwargs['selector'] = adapter_config['selector']
                adapter = adapter_class(**kwargs)
            else:
                adapter = adapter_class()

            return UniversalContentSource(config, fetcher, adapter)

        except Exception as e:
            logger.error(f"Error creating source {config.name}: {e}")
            raise

    def known_adapters(self) -> list[str]:
        return list(self._adapter_registry)


class ContentSourceManager:
    """Manager for coordinating all content sources"""

    def __init__(self, factory: Optional[SourceFactory] = None):
        self.factory = factory or SourceFactory()
        self.sources: dict[str, UniversalContentSource] = {}
        self.logger = logging.getLogger(__name__)

    def add_source(self, config: SourceConfig) -> bool:
        """Add a source to the manager"""
        try:
            if config.name in self.sources:
                self.logger.warning(f"Source {config.name} already exists, replacing")

            source = self.factory.create_source(config)
            self.sources[config.name] = source
            self.logger.info(f"Added source: {config.name}")
            return True

        except Exception as e:
            self.logger.error(f"Failed to add source {config.name}: {e}")
            return False

    def register(self, source: UniversalContentSource) -> None:
        """Add an already built source (tests, custom wiring)"""
        self.sources[source.config.name] = source

    def get_source(self, name: str) -> Optional[UniversalContentSource]:
        """Get a source by name"""
        return self.sources.get(name)

    def get_enabled_sources(self) -> list[UniversalContentSource]:
        """Get all enabled sources"""
        return [source for source in self.sources.values() if source.is_enabled()]

    def get_all_sources(self) -> list[UniversalContentSource]:
        """Get all sources (enabled and disabled)"""
        return list(self.sources.values())

    def missing_sources(self) -> list[str]:
        """Edition sources that have not been configured"""
        return [name for name in EDITION_SOURCES if name not in self.sources]

    async def fetch_source(self, name: str) -> ContentResult:
        """Fetch content from one source; raises KeyError for unknown names"""
        source = self.sources.get(name)
        if source is None:
            raise KeyError(f"Source {name} not found")
        return await self._fetch_bounded(source)

    async def fetch_all(self, names: tuple[str, ...] = EDITION_SOURCES) -> dict[str, ContentResult]:
        """
        Fetch every named source concurrently and wait for all to settle.

        A failure or timeout in one source yields that source's fallback and
        never cancels or delays the others beyond its own timeout.
        """
        sources = [self.sources[name] for name in names]
        results = await asyncio.gather(
            *(self._fetch_bounded(source) for source in sources),
            return_exceptions=True
        )

        settled: dict[str, ContentResult] = {}
        for source, result in zip(sources, results):
            if isinstance(result, BaseException):
                self.logger.error(f"Unexpected failure from {source.config.name}: {result!r}")
                result = source.fallback_result(error=repr(result))
            settled[source.config.name] = result

        fallback_count = sum(1 for result in settled.values() if result.from_fallback)
        self.logger.info(f"Fetched {len(settled)} sources, {fallback_count} served fallback content")
        return settled

    async def _fetch_bounded(self, source: UniversalContentSource) -> ContentResult:
        """Run one source under its timeout"""
        try:
            return await asyncio.wait_for(source.get_content(), timeout=source.get_timeout())
        except asyncio.TimeoutError:
            self.logger.warning(f"Source {source.config.name} timed out after {source.get_timeout()}s")
            return source.fallback_result(error="timeout")

    async def close(self) -> None:
        """Close every fetcher session; sessions live until application shutdown"""
        for source in self.sources.values():
            try:
                await source.fetcher.close()
            except Exception as e:
                self.logger.warning(f"Error closing fetcher for {source.config.name}: {e}")

    def get_source_status(self) -> dict[str, dict[str, Any]]:
        """Get status information for all sources"""
        status = {}

        for name, source in self.sources.items():
            status[name] = {
                'enabled': source.is_enabled(),
                'timeout': source.get_timeout(),
                'url': source.config.url,
                'adapter_class': source.config.adapter_class,
                'source_type': source.config.source_type
            }

        return status
