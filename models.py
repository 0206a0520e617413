"""Data models for the WordPress export to MDX migration pipeline."""

import logging
import re
import unicodedata
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

logger = logging.getLogger('wordpress_mdx_migrator')


class MigrationError(Exception):
    """Base exception for migration errors."""
    pass


class OutputDirectoryError(MigrationError):
    """Raised when the output directory cannot be used for a run."""
    pass


class ExportReadError(MigrationError):
    """Raised when the export document cannot be read or parsed."""
    pass


class ConversionError(MigrationError):
    """Raised when a record body cannot be converted to markdown."""
    pass


class ImageDownloadError(MigrationError):
    """Raised when a remote image cannot be fetched or is not an image."""
    pass


class ConversionStatus(Enum):
    """Outcome of a single record conversion."""
    PENDING = "pending"
    SUCCESS = "success"
    PARTIAL = "partial"
    FAILED = "failed"


_SLUG_PUNCTUATION = re.compile(r'[^\w\s-]')
_SLUG_SEPARATORS = re.compile(r'[\s_-]+')


def slugify(title: str) -> str:
    """
    Derive a filesystem and URL safe slug from a title.

    Punctuation is removed rather than replaced, so "Don't Stop!" becomes
    "dont-stop".
    """
    if not title:
        return "untitled"

    normalized = unicodedata.normalize('NFKD', title)
    normalized = normalized.encode('ascii', 'ignore').decode('ascii')
    normalized = _SLUG_PUNCTUATION.sub('', normalized).strip().lower()
    normalized = _SLUG_SEPARATORS.sub('-', normalized).strip('-')

    return normalized or "untitled"


@dataclass
class ContentRecord:
    """One exported post with body markup and metadata."""

    title: str
    body: str
    link: str = ''
    published: Optional[datetime] = None
    description: str = ''
    categories: List[str] = field(default_factory=list)
    metadata: List[Tuple[str, str]] = field(default_factory=list)
    post_id: Optional[str] = None
    post_type: str = 'post'
    status: Optional[str] = None
    creator: Optional[str] = None

    @property
    def slug(self) -> str:
        return slugify(self.title)

    def meta_values(self, *markers: str) -> List[str]:
        """Return meta values whose key contains any of the given markers."""
        return [
            value for key, value in self.metadata
            if key and any(marker in key for marker in markers)
        ]

    def description_candidates(self) -> List[str]:
        candidates = [self.description] + self.meta_values('metadesc', 'description')
        return [candidate for candidate in candidates if candidate]

    def hero_candidates(self) -> List[str]:
        """Remote hero image URLs from OpenGraph/Twitter metadata."""
        return [
            value.strip() for value in self.meta_values('opengraph-image', 'twitter-image')
            if value and value.strip().startswith('http')
        ]

    def to_dict(self) -> Dict[str, Any]:
        """Serialize record to dictionary (without the body)."""
        return {
            'post_id': self.post_id,
            'title': self.title,
            'slug': self.slug,
            'link': self.link,
            'published': self.published.isoformat() if self.published else None,
            'categories': list(self.categories),
            'post_type': self.post_type,
            'status': self.status,
            'body_length': len(self.body or '')
        }


@dataclass(frozen=True)
class ImageAsset:
    """A remote image downloaded into a record's media directory."""

    url: str
    file_name: str
    extension: str
    directory: Path

    @property
    def relative_reference(self) -> str:
        """Reference to the image relative to the record's .mdx file."""
        return f"./{self.directory.name}/{self.file_name}"

    @property
    def is_animated(self) -> bool:
        return self.extension == 'gif'


def _single_quoted(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


def _double_quoted(value: str) -> str:
    value = ' '.join(value.split())
    return '"' + value.replace('\\', '\\\\').replace('"', '\\"') + '"'


@dataclass
class FrontMatter:
    """Header block preceding an MDX document body."""

    title: str
    published: datetime
    description: str = ''
    redirect_from: List[str] = field(default_factory=list)
    categories: List[str] = field(default_factory=list)
    hero: str = ''

    def render(self) -> str:
        lines = [
            '---',
            f"title: {_single_quoted(self.title)}",
            f"description: {_double_quoted(self.description)}",
            f"published: {self.published.strftime('%Y-%m-%d')}",
            'redirect_from:',
        ]
        lines.extend(f"  - {path}" for path in self.redirect_from)

        if self.categories:
            lines.append(f"categories: {_double_quoted(', '.join(self.categories))}")

        lines.append(f"hero: {self.hero}")
        lines.append('---')
        lines.append('')
        return '\n'.join(lines)


@dataclass
class ConversionResult:
    """Tracks the outcome of converting one record for reporting."""

    slug: str
    title: str
    status: ConversionStatus = ConversionStatus.PENDING
    output_path: Optional[str] = None
    images: List[str] = field(default_factory=list)
    hero: Optional[str] = None
    warnings: List[str] = field(default_factory=list)
    error: Optional[str] = None
    duration: float = 0.0
    timestamp: Optional[str] = None

    def __post_init__(self) -> None:
        """Set timestamp if not provided."""
        if self.timestamp is None:
            self.timestamp = datetime.utcnow().isoformat()

    @property
    def succeeded(self) -> bool:
        return self.status in (ConversionStatus.SUCCESS, ConversionStatus.PARTIAL)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'slug': self.slug,
            'title': self.title,
            'status': self.status.value,
            'output_path': self.output_path,
            'images': list(self.images),
            'hero': self.hero,
            'warnings': list(self.warnings),
            'error': self.error,
            'duration': round(self.duration, 3),
            'timestamp': self.timestamp
        }


__all__ = [
    'ContentRecord',
    'ConversionError',
    'ConversionResult',
    'ConversionStatus',
    'ExportReadError',
    'FrontMatter',
    'ImageAsset',
    'ImageDownloadError',
    'MigrationError',
    'OutputDirectoryError',
    'slugify'
]
