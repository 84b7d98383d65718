from fastapi import APIRouter, HTTPException, Request, Depends, File, Form, Header, UploadFile
from fastapi.responses import JSONResponse
from typing import Any, Optional
import logging

from src.auth.dependencies import bearer_token, get_token_service, require_admin
from src.auth.tokens import AdminTokenService
from src.models.api import (
    LoginRequest, LoginResponse, PublishResponse, LatestDateResponse, PhotoPlaceholder, edition_to_payload
)
from src.models.errors import AuthorizationError, EditionValidationError
from src.services import EditionQueryService, PublishService
from src.sources.factory import ContentSourceManager

logger = logging.getLogger(__name__)

# Create router
router = APIRouter()

PLACEHOLDER_PHOTO_PATH = "/photo.jpg"
PLACEHOLDER_PHOTO_LABEL = "angy has been really kind and helpful. floofy gets scary mad when I take breaks tho"


def get_publish_service(request: Request) -> PublishService:
    """Get the publish service instance from FastAPI app state"""
    if not hasattr(request.app.state, 'publish_service'):
        raise HTTPException(status_code=500, detail="Publish service not initialized")
    return request.app.state.publish_service


def get_query_service(request: Request) -> EditionQueryService:
    """Get the edition query service instance from FastAPI app state"""
    if not hasattr(request.app.state, 'query_service'):
        raise HTTPException(status_code=500, detail="Query service not initialized")
    return request.app.state.query_service


def get_source_manager(request: Request) -> ContentSourceManager:
    """Get the content source manager instance from FastAPI app state"""
    if not hasattr(request.app.state, 'source_manager'):
        raise HTTPException(status_code=500, detail="Source manager not initialized")
    return request.app.state.source_manager


# Administrator endpoints

@router.post("/auth/login", response_model=LoginResponse)
async def login(
    body: LoginRequest,
    token_service: AdminTokenService = Depends(get_token_service)
):
    """Exchange the administrator password for a bearer token"""
    token = token_service.login(body.password)
    if token is None:
        raise AuthorizationError("Invalid password")
    return LoginResponse(token=token)


@router.post("/publish", response_model=PublishResponse)
async def publish(
    date: Optional[str] = Form(None),
    headline: Optional[str] = Form(None),
    label: Optional[str] = Form(None),
    photo: Optional[UploadFile] = File(None),
    authorization: Optional[str] = Header(None),
    publish_service: PublishService = Depends(get_publish_service)
):
    """Create or replace the edition for one day"""
    photo_bytes = await photo.read() if photo is not None else None

    result = await publish_service.publish(
        token=bearer_token(authorization),
        date=date,
        headline=headline,
        label=label,
        photo=photo_bytes
    )
    return PublishResponse(success=True, message=result.message)


@router.get("/admin/sources")
async def list_sources(
    _: str = Depends(require_admin),
    source_manager: ContentSourceManager = Depends(get_source_manager)
):
    """Configured content sources and their status"""
    sources = source_manager.get_all_sources()
    return {
        "total": len(sources),
        "enabled": len(source_manager.get_enabled_sources()),
        "missing": source_manager.missing_sources(),
        "status": source_manager.get_source_status()
    }


# Edition endpoints

@router.get("/daily")
def get_daily(
    date: Optional[str] = None,
    query_service: EditionQueryService = Depends(get_query_service)
):
    """Full edition for a date, or null when nothing was published"""
    if not date:
        raise EditionValidationError("Date parameter is required")

    edition = query_service.get_edition(date)
    if edition is None:
        logger.info(f"No edition published for {date}")
        return JSONResponse(content=None)
    return edition_to_payload(edition)


@router.get("/latest-date", response_model=LatestDateResponse)
def get_latest_date(query_service: EditionQueryService = Depends(get_query_service)):
    """Most recent published date before today"""
    return LatestDateResponse(date=query_service.get_latest_available())


@router.get("/calendar")
def get_calendar(
    year: Optional[str] = None,
    month: Optional[str] = None,
    query_service: EditionQueryService = Depends(get_query_service)
):
    """Availability of each day of a month"""
    if not year or not month:
        raise EditionValidationError("Year and month parameters are required")

    try:
        year_num = int(year)
        month_num = int(month)
    except ValueError as e:
        raise EditionValidationError("Invalid year or month", cause=e) from e

    calendar = query_service.get_calendar_month(year_num, month_num)
    return calendar.model_dump(by_alias=True)


@router.get("/photo", response_model=PhotoPlaceholder, response_model_by_alias=True)
async def get_photo(request: Request):
    """Placeholder photo shown before anything is published"""
    settings = getattr(request.app.state, 'settings', None)
    base_url = (settings.public_base_url if settings else "").rstrip("/")
    return PhotoPlaceholder(image_url=f"{base_url}{PLACEHOLDER_PHOTO_PATH}", label=PLACEHOLDER_PHOTO_LABEL)


# Content proxy endpoints: 200 with live content, 500 with the fallback value

async def _proxy_source(
    source_manager: ContentSourceManager,
    name: str,
    extra: Optional[dict[str, Any]] = None
) -> JSONResponse:
    result = await source_manager.fetch_source(name)
    payload = result.value.model_dump(mode="json", by_alias=True)
    if extra:
        payload.update(extra)

    if result.from_fallback:
        logger.warning(f"Serving fallback {name}: {result.error}")
        return JSONResponse(status_code=500, content=payload)
    return JSONResponse(content=payload)


@router.get("/poem")
async def get_poem(source_manager: ContentSourceManager = Depends(get_source_manager)):
    return await _proxy_source(source_manager, 'poem')


@router.get("/joke")
async def get_joke(source_manager: ContentSourceManager = Depends(get_source_manager)):
    return await _proxy_source(source_manager, 'joke')


@router.get("/activity")
async def get_activity(source_manager: ContentSourceManager = Depends(get_source_manager)):
    return await _proxy_source(source_manager, 'activity')


@router.get("/cat-fact")
async def get_cat_fact(source_manager: ContentSourceManager = Depends(get_source_manager)):
    return await _proxy_source(source_manager, 'cat_fact')


@router.get("/dog-fact")
async def get_dog_fact(source_manager: ContentSourceManager = Depends(get_source_manager)):
    return await _proxy_source(source_manager, 'dog_fact')


@router.get("/trivia-fact")
async def get_trivia_fact(source_manager: ContentSourceManager = Depends(get_source_manager)):
    return await _proxy_source(source_manager, 'trivia_fact')


@router.get("/comic")
async def get_comic(source_manager: ContentSourceManager = Depends(get_source_manager)):
    """Today's strip from a random comic page, with the page it came from"""
    result = await source_manager.fetch_source('comic')
    payload = result.value.model_dump(mode="json", by_alias=True)
    payload["source"] = result.source_url

    if result.from_fallback:
        payload["error"] = "Comic unavailable"
        logger.warning(f"Serving fallback comic: {result.error}")
        return JSONResponse(status_code=500, content=payload)
    return JSONResponse(content=payload)
