from pydantic import BaseModel, Field
from typing import Any, Optional

from src.models.domain import Edition


class LoginRequest(BaseModel):
    """Request body for /auth/login"""
    password: str = ""


class LoginResponse(BaseModel):
    """Response model for /auth/login"""
    token: str


class PublishResponse(BaseModel):
    """Response model for /publish"""
    success: bool
    message: str


class LatestDateResponse(BaseModel):
    """Response model for /latest-date"""
    date: str


class CalendarDay(BaseModel):
    """One day cell of a calendar month; unavailable days carry no image"""
    available: bool
    headline: Optional[str] = None
    image_url: Optional[str] = Field(default=None, serialization_alias="imageUrl")
    label: str


class CalendarResponse(BaseModel):
    """Response model for /calendar"""
    year: int
    month: int
    data: dict[str, CalendarDay]


class PhotoPlaceholder(BaseModel):
    """Response model for /photo"""
    image_url: str = Field(serialization_alias="imageUrl")
    label: str


def edition_to_payload(edition: Edition) -> dict[str, Any]:
    """Render an edition as JSON-ready data with the photo inlined as a data URL"""
    payload = edition.model_dump(mode="json", by_alias=True, exclude={"photo"})
    payload["photo"] = {
        "imageUrl": edition.photo.image_url,
        "label": edition.photo.label,
    }
    return payload
