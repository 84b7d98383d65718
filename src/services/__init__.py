"""
Services layer for business logic.

This module contains the core business logic services that coordinate
between the API layer and the data layer.
"""

from .edition_query_service import EditionQueryService
from .image_compressor import CompressionPolicy, ImageCompressor
from .publish_service import PublishResult, PublishService

__all__ = ['EditionQueryService', 'CompressionPolicy', 'ImageCompressor', 'PublishResult', 'PublishService']
