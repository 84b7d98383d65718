"""
Source adapters for transforming external payloads into daily content.

Each adapter normalizes one third-party response into a fixed internal
shape and knows the fallback value to use when that source fails.
"""

import logging
import random
from abc import abstractmethod
from datetime import date
from typing import Any, Callable, Optional

from pydantic import TypeAdapter, ValidationError

from src.models.domain import Activity, Comic, Fact, Joke, Poem, SingleJoke
from src.models.errors import ContentSourceError
from src.sources import SourceAdapter, SourceConfig
from src.sources.comic_parser import DEFAULT_SELECTOR, JsonLdComicParser

logger = logging.getLogger(__name__)


class PoemAdapter(SourceAdapter):
    """Adapter for the PoetryDB line-count endpoint"""

    def __init__(self, min_lines: int = 3, max_lines: int = 13, rng: Optional[random.Random] = None):
        if min_lines > max_lines:
            raise ValueError(f"min_lines ({min_lines}) exceeds max_lines ({max_lines})")
        self.min_lines = min_lines
        self.max_lines = max_lines
        self.rng = rng or random.Random()

    def resolve_url(self, config: SourceConfig) -> str:
        """Fill the URL template with a random line count"""
        line_count = self.rng.randint(self.min_lines, self.max_lines)
        return config.url.format(line_count=line_count)

    def adapt(self, raw_data: Any) -> Poem:
        """Pick one matching poem at random and clean its lines"""
        if not isinstance(raw_data, list) or not raw_data:
            raise ContentSourceError("No poems found")

        poem = self.rng.choice(raw_data)
        if not isinstance(poem, dict):
            raise ContentSourceError(f"Invalid poem entry: {type(poem)}")

        try:
            return Poem(
                title=poem['title'],
                author=poem['author'],
                lines=self.clean_lines(poem['lines'])
            )
        except (KeyError, TypeError, ValidationError) as e:
            raise ContentSourceError(f"Malformed poem payload: {e}") from e

    @staticmethod
    def clean_lines(lines: list[str]) -> list[str]:
        """Drop '_' placeholders, turn '--' into an en dash, skip blank lines"""
        cleaned = [line.replace('_', '').replace('--', '–') for line in lines]
        return [line for line in cleaned if line.strip()]

    def fallback(self) -> Poem:
        return Poem(
            title="Silence",
            author="Unknown",
            lines=["In quiet moments", "We find peace", "Within ourselves"]
        )


class JokeAdapter(SourceAdapter):
    """Adapter for JokeAPI; keeps the single/two-part shape as returned"""

    _joke = TypeAdapter(Joke)

    def adapt(self, raw_data: Any) -> Joke:
        if not isinstance(raw_data, dict):
            raise ContentSourceError(f"Invalid joke payload: {type(raw_data)}")

        if raw_data.get('error'):
            raise ContentSourceError(f"Joke API error: {raw_data.get('message', 'unknown')}")

        try:
            return self._joke.validate_python(raw_data)
        except ValidationError as e:
            raise ContentSourceError(f"Malformed joke payload: {e}") from e

    def fallback(self) -> Joke:
        return SingleJoke(text="Why don't scientists trust atoms? Because they make up everything!")


class ActivityAdapter(SourceAdapter):
    """Adapter for the Bored API random activity endpoint"""

    def adapt(self, raw_data: Any) -> Activity:
        if not isinstance(raw_data, dict) or not isinstance(raw_data.get('activity'), str):
            raise ContentSourceError("Activity payload missing 'activity'")
        return Activity(description=raw_data['activity'].lower())

    def fallback(self) -> Activity:
        return Activity(description="take a moment to breathe and relax")


class FactAdapter(SourceAdapter):
    """Base adapter for single-purpose fact sources"""

    default_fact = ""

    def adapt(self, raw_data: Any) -> Fact:
        text = self.extract_fact(raw_data)
        if not isinstance(text, str) or not text.strip():
            raise ContentSourceError(f"{self.get_source_name()} payload has no fact text")
        return Fact(fact=text)

    @abstractmethod
    def extract_fact(self, raw_data: Any) -> Any:
        """Pull the fact text out of the payload, or None when absent"""
        pass

    def fallback(self) -> Fact:
        return Fact(fact=self.default_fact)


class CatFactAdapter(FactAdapter):
    """Adapter for catfact.ninja"""

    default_fact = "Cats sleep for 70% of their lives, which is 13-16 hours a day."

    def extract_fact(self, raw_data: Any) -> Any:
        return raw_data.get('fact') if isinstance(raw_data, dict) else None


class DogFactAdapter(FactAdapter):
    """Adapter for the dogapi.dog v2 facts endpoint"""

    default_fact = (
        "Dogs have about 300 million olfactory receptors in their noses, "
        "compared to about 6 million in humans."
    )

    def extract_fact(self, raw_data: Any) -> Any:
        try:
            return raw_data['data'][0]['attributes']['body']
        except (KeyError, IndexError, TypeError):
            return None


class TriviaFactAdapter(FactAdapter):
    """Adapter for the uselessfacts random fact endpoint"""

    default_fact = "Honey never spoils. Archaeologists have found edible honey in ancient Egyptian tombs."

    def extract_fact(self, raw_data: Any) -> Any:
        return raw_data.get('text') if isinstance(raw_data, dict) else None


class ComicAdapter(SourceAdapter):
    """Adapter scraping a daily strip from one of several comic pages"""

    def __init__(
        self,
        sources: list[str],
        selector: str = DEFAULT_SELECTOR,
        rng: Optional[random.Random] = None,
        today: Optional[Callable[[], date]] = None
    ):
        if not sources:
            raise ValueError("ComicAdapter needs at least one source page")
        self.sources = list(sources)
        self.parser = JsonLdComicParser(selector)
        self.rng = rng or random.Random()
        # Dates on the strip pages follow the server-local calendar
        self.today = today or date.today

    def resolve_url(self, config: SourceConfig) -> str:
        return self.rng.choice(self.sources)

    def adapt(self, raw_data: Any) -> Comic:
        if not isinstance(raw_data, str) or not raw_data.strip():
            raise ContentSourceError("Empty comic page")

        strip = self.parser.parse(raw_data, self.today())
        if strip is None:
            raise ContentSourceError("Comic image not found for today or yesterday in JSON-LD data")

        return Comic(image_url=strip.image_url, alt_text=strip.alt_text)

    def fallback(self) -> Comic:
        return Comic(image_url=None, alt_text="Unable to load comic")
