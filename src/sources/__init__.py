"""
Content source framework implementing Strategy + Adapter patterns.

This module provides the core abstractions for fetching and transforming
daily content (poems, jokes, facts, comics) from external sources in a
unified way. A source never raises to its caller: any failure is replaced
by the adapter's fixed fallback value.
"""

from abc import ABC, abstractmethod
from typing import Protocol, Any, Optional
import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)


# Strategy Pattern: How to fetch data
#
# Any class with an async 'fetch' method matching this signature can be
# plugged into a source (JSON APIs, HTML pages, mocks).
class DataFetcher(Protocol):
    """Protocol defining how to fetch data from a source"""

    async def fetch(self, url: str, **kwargs) -> Any:
        """Fetch raw data from the given URL"""
        ...

    async def close(self) -> None:
        """Release any transport resources"""
        ...


# Adapter Pattern: How to transform source-specific data
class SourceAdapter(ABC):
    """Abstract base class for turning a raw payload into one content value"""

    @abstractmethod
    def adapt(self, raw_data: Any) -> Any:
        """Transform raw source data; raise ContentSourceError if unusable"""
        pass

    @abstractmethod
    def fallback(self) -> Any:
        """Fixed value of the same shape, used whenever the source fails"""
        pass

    def resolve_url(self, config: "SourceConfig") -> str:
        """URL to request for this call; adapters may randomize it"""
        return config.url

    def get_source_name(self) -> str:
        """Get the human-readable name of this source"""
        return self.__class__.__name__.replace('Adapter', '')


@dataclass
class SourceConfig:
    """Configuration for a content source"""
    name: str
    enabled: bool = True
    source_type: str = "json_api"
    adapter_class: str = ""
    url: str = ""
    timeout: float = 8.0  # seconds
    headers: Optional[dict[str, str]] = None
    adapter_config: Optional[dict[str, Any]] = None

    def __post_init__(self):
        if self.headers is None:
            self.headers = {}
        if self.adapter_config is None:
            self.adapter_config = {}


@dataclass
class ContentResult:
    """Outcome of one source call: the value plus whether it is the fallback"""
    name: str
    value: Any
    from_fallback: bool = False
    source_url: Optional[str] = None
    error: Optional[str] = None


class UniversalContentSource:
    """
    Orchestrator that combines a DataFetcher strategy with a SourceAdapter
    to create a unified content source.
    """

    def __init__(self, config: SourceConfig, fetcher: DataFetcher, adapter: SourceAdapter):
        self.config = config
        self.fetcher = fetcher
        self.adapter = adapter
        self.logger = logging.getLogger(f"{__name__}.{config.name}")

    async def get_content(self) -> ContentResult:
        """Fetch and transform content; substitute the fallback on any failure"""
        if not self.is_enabled():
            self.logger.debug(f"Source {self.config.name} is disabled, using fallback")
            return self.fallback_result(error="source disabled")

        url = None
        try:
            # Use adapter to pick the request URL, then strategy to fetch it
            url = self.adapter.resolve_url(self.config)
            self.logger.debug(f"Fetching content from {self.config.name} at {url}")

            raw_data = await self.fetcher.fetch(
                url,
                headers=dict(self.config.headers)
            )

            # Use adapter to transform data
            value = self.adapter.adapt(raw_data)

            self.logger.info(f"Retrieved content from {self.config.name}")
            return ContentResult(name=self.config.name, value=value, source_url=url)

        except Exception as e:
            self.logger.error(f"Error fetching content from {self.config.name}: {e}")
            return self.fallback_result(error=str(e) or e.__class__.__name__)

    def fallback_result(self, error: Optional[str] = None) -> ContentResult:
        """Build a result carrying the adapter's fallback value"""
        return ContentResult(
            name=self.config.name,
            value=self.adapter.fallback(),
            from_fallback=True,
            error=error
        )

    def is_enabled(self) -> bool:
        """Check if this source is enabled"""
        return self.config.enabled

    def get_timeout(self) -> float:
        """Get the per-call timeout for this source"""
        return self.config.timeout
