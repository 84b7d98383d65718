"""
Test configuration and fixtures for the daily edition service.

This module provides canned upstream payloads, mock-backed content sources
and an app wired with in-memory components.
"""

import io
import json
from datetime import date, timedelta

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from src.main import app
from src.auth.tokens import AdminTokenService
from src.config import Settings
from src.repositories.edition_repository import InMemoryEditionRepository
from src.services import CompressionPolicy, EditionQueryService, ImageCompressor, PublishService
from src.sources import SourceConfig
from src.sources.comic_parser import format_strip_date
from src.sources.factory import ContentSourceManager

ADMIN_PASSWORD = "letmein"

COMIC_PAGES = [
    "https://www.gocomics.com/garfield",
    "https://www.gocomics.com/peanuts",
]

POEM_PAYLOAD = [
    {
        "title": "Ozymandias",
        "author": "Percy Bysshe Shelley",
        "lines": [
            "I met a traveller from an antique land",
            "",
            "Who said--Two vast and trunkless legs of stone",
            "Stand in the desert_"
        ],
        "linecount": "4"
    }
]

JOKE_PAYLOAD = {
    "error": False,
    "category": "Programming",
    "type": "twopart",
    "setup": "Why do programmers prefer dark mode?",
    "delivery": "Because light attracts bugs.",
    "flags": {"nsfw": False},
    "id": 42,
    "safe": True,
    "lang": "en"
}

ACTIVITY_PAYLOAD = {"activity": "Learn How To Juggle", "type": "recreational", "participants": 1}

CAT_FACT_PAYLOAD = {"fact": "A group of cats is called a clowder.", "length": 36}

DOG_FACT_PAYLOAD = {
    "data": [
        {"id": "1", "type": "fact", "attributes": {"body": "Dogs can learn more than 150 words."}}
    ]
}

TRIVIA_FACT_PAYLOAD = {"id": "abc", "text": "Bananas are berries.", "source": "example.org", "language": "en"}


def comic_page(day: date, image_url: str = "https://assets.example.com/strip.gif",
               name: str = "Garfield Comic Strip") -> str:
    """Minimal strip page with one JSON-LD ImageObject published on ``day``"""
    block = json.dumps({
        "@context": "https://schema.org",
        "@type": "ImageObject",
        "contentUrl": image_url,
        "datePublished": format_strip_date(day),
        "name": name
    })
    return (
        "<html><body><div><div>"
        f'<script type="application/ld+json">{block}</script>'
        "</div></div></body></html>"
    )


def make_jpeg(width: int = 1600, height: int = 1200, color=(200, 120, 40), fmt: str = "JPEG") -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buffer, format=fmt)
    return buffer.getvalue()


def mock_source_configs(payloads: dict) -> list[SourceConfig]:
    """SourceConfigs for all seven sources served by MockFetcher"""
    adapters = {
        'poem': 'PoemAdapter',
        'joke': 'JokeAdapter',
        'activity': 'ActivityAdapter',
        'cat_fact': 'CatFactAdapter',
        'dog_fact': 'DogFactAdapter',
        'trivia_fact': 'TriviaFactAdapter',
        'comic': 'ComicAdapter'
    }
    configs = []
    for name, adapter_class in adapters.items():
        adapter_config = {'mock_data': payloads.get(name)}
        if name == 'comic':
            adapter_config['sources'] = COMIC_PAGES
        configs.append(SourceConfig(
            name=name,
            source_type='mock',
            adapter_class=adapter_class,
            url=f"https://api.example.com/{name}/{{line_count}}" if name == 'poem' else f"https://api.example.com/{name}",
            adapter_config=adapter_config
        ))
    return configs


@pytest.fixture
def upstream_payloads():
    """Healthy payloads for every content source"""
    return {
        'poem': POEM_PAYLOAD,
        'joke': JOKE_PAYLOAD,
        'activity': ACTIVITY_PAYLOAD,
        'cat_fact': CAT_FACT_PAYLOAD,
        'dog_fact': DOG_FACT_PAYLOAD,
        'trivia_fact': TRIVIA_FACT_PAYLOAD,
        'comic': comic_page(date.today())
    }


@pytest.fixture
def source_manager(upstream_payloads):
    """Content source manager with every source backed by canned data"""
    manager = ContentSourceManager()
    for config in mock_source_configs(upstream_payloads):
        assert manager.add_source(config)
    return manager


@pytest.fixture
def broken_source_manager():
    """Content source manager whose sources all return unusable payloads"""
    manager = ContentSourceManager()
    for config in mock_source_configs({'comic': comic_page(date.today() - timedelta(days=5))}):
        assert manager.add_source(config)
    return manager


@pytest.fixture
def in_memory_repository():
    """Create an in-memory repository for testing"""
    return InMemoryEditionRepository()


@pytest.fixture
def token_service():
    return AdminTokenService(ADMIN_PASSWORD)


@pytest.fixture
def admin_token(token_service):
    return token_service.login(ADMIN_PASSWORD)


@pytest.fixture
def compressor():
    return ImageCompressor(CompressionPolicy())


@pytest.fixture
def jpeg_bytes():
    """Large photo that needs resizing"""
    return make_jpeg()


@pytest.fixture
def publish_service(in_memory_repository, source_manager, token_service, compressor):
    return PublishService(in_memory_repository, source_manager, token_service, compressor)


@pytest.fixture
def query_service(in_memory_repository):
    return EditionQueryService(in_memory_repository)


@pytest.fixture
def test_settings():
    return Settings(
        _env_file=None,
        storage_type="inmemory",
        admin_password=ADMIN_PASSWORD,
        public_base_url="https://lumen.example.com/"
    )


@pytest.fixture
def test_app(test_settings, in_memory_repository, source_manager, token_service, publish_service, query_service):
    """Create a test app with all components initialized"""
    # Set up the app state with test components
    app.state.settings = test_settings
    app.state.repository = in_memory_repository
    app.state.source_manager = source_manager
    app.state.token_service = token_service
    app.state.publish_service = publish_service
    app.state.query_service = query_service

    return app


@pytest.fixture
def client(test_app):
    """Create a test client with the test app"""
    return TestClient(test_app)
