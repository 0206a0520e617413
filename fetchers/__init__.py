"""Fetchers package for reading export documents and downloading remote images."""

from .base_fetcher import BaseFetcher
from .export_reader import WordPressExportReader
from .image_fetcher import FetchedImage, ImageFetcher, detect_image_format, infer_image_extension

__all__ = [
    'BaseFetcher',
    'FetchedImage',
    'ImageFetcher',
    'WordPressExportReader',
    'detect_image_format',
    'infer_image_extension'
]
