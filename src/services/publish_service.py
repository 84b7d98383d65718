"""
Publish service for daily editions.

Publishing takes the administrator's headline, label and photo for one day,
gathers the day's extras from every content source and stores the result as
the single edition for that date. Order matters: the credential and the
caller's input are checked before any external call is made.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional

from src.auth.tokens import AdminTokenService
from src.models.domain import Edition, Photo
from src.models.errors import (
    AuthorizationError, EditionError, EditionValidationError, PersistenceError
)
from src.repositories.edition_repository import EditionRepository
from src.services.image_compressor import ImageCompressor
from src.sources.factory import ContentSourceManager
from src.utils.edition_dates import to_edition_date

logger = logging.getLogger(__name__)


@dataclass
class PublishResult:
    date: str
    created: bool
    fallback_sources: list[str] = field(default_factory=list)

    @property
    def message(self) -> str:
        return "Content published" if self.created else "Content updated"


class PublishService:
    """Service that authorizes, assembles and stores one edition"""

    def __init__(
        self,
        repository: EditionRepository,
        source_manager: ContentSourceManager,
        token_service: AdminTokenService,
        compressor: ImageCompressor,
        clock: Optional[Callable[[], datetime]] = None
    ):
        self.repository = repository
        self.source_manager = source_manager
        self.token_service = token_service
        self.compressor = compressor
        self.clock = clock
        self.logger = logging.getLogger(__name__)

    async def publish(
        self,
        token: Optional[str],
        date: Optional[str],
        headline: Optional[str],
        label: Optional[str],
        photo: Optional[bytes] = None
    ) -> PublishResult:
        """
        Publish (or re-publish) the edition for ``date``.

        Raises AuthorizationError for a bad credential, EditionValidationError
        for bad input, and EditionError("Failed to publish content") for
        anything unexpected.
        """
        if not self.token_service.verify(token):
            raise AuthorizationError("Unauthorized")

        try:
            edition_date = self._resolve_date(date)

            headline = (headline or "").strip()
            label = (label or "").strip()
            if not headline or not label:
                raise EditionValidationError("Missing required fields")

            photo_bytes = await self._resolve_photo(edition_date, photo)

            results = await self.source_manager.fetch_all()
            fallback_sources = [name for name, result in results.items() if result.from_fallback]
            if fallback_sources:
                self.logger.warning(f"Edition {edition_date} uses fallback content for: {', '.join(fallback_sources)}")

            edition = Edition(
                date=edition_date,
                headline=headline,
                photo=Photo(image_bytes=photo_bytes, label=label),
                poem=results['poem'].value,
                joke=results['joke'].value,
                activity=results['activity'].value,
                cat_fact=results['cat_fact'].value,
                dog_fact=results['dog_fact'].value,
                trivia_fact=results['trivia_fact'].value,
                comic=results['comic'].value
            )

            created = await asyncio.to_thread(self.repository.upsert, edition)

        except EditionValidationError:
            raise
        except EditionError as e:
            self.logger.error(f"Failed to publish content: {e}")
            raise PersistenceError("Failed to publish content", cause=e) from e
        except Exception as e:
            self.logger.exception(f"Unexpected error while publishing: {e}")
            raise EditionError("Failed to publish content", cause=e) from e

        result = PublishResult(date=edition_date, created=created, fallback_sources=fallback_sources)
        self.logger.info(f"{result.message} for {edition_date}")
        return result

    def _resolve_date(self, date: Optional[str]) -> str:
        now = self.clock() if self.clock else None
        try:
            return to_edition_date(date or None, now=now)
        except ValueError as e:
            raise EditionValidationError("Invalid date", cause=e) from e

    async def _resolve_photo(self, edition_date: str, photo: Optional[bytes]) -> bytes:
        """Compress a new upload, else reuse the stored photo of the same day"""
        if photo:
            compressed = await self.compressor.compress_async(photo)
            self.logger.info(f"Compressed photo for {edition_date}: {len(photo)} -> {len(compressed)} bytes")
            return compressed

        existing = await asyncio.to_thread(self.repository.get_by_date, edition_date)
        if existing is None:
            raise EditionValidationError("Photo is required for new content")

        self.logger.info(f"No new photo for {edition_date}, keeping the stored one")
        return existing.photo.image_bytes
