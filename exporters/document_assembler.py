"""Document assembler: front matter plus converted body."""

import logging
from typing import Any, Dict, List, Optional, Sequence

from config_loader import DEFAULT_CONFIG, get_nested
from models import ContentRecord, FrontMatter, ImageAsset


def select_hero(assets: Sequence[ImageAsset]) -> Optional[str]:
    """Return the first non-GIF asset as a reference relative to the .mdx file."""
    for asset in assets:
        # ./<slug>/<name> relative to the .mdx file, never the bare file name
        if not asset.is_animated:
            return asset.relative_reference
    return None


def longest_description(record: ContentRecord) -> str:
    candidates = record.description_candidates()
    if not candidates:
        return ''
    # max() keeps the first of equal-length candidates
    return max(candidates, key=len)


class DocumentAssembler:
    """Builds the final MDX text for one record."""

    def __init__(self, config: Optional[Dict[str, Any]] = None, logger: logging.Logger = None):
        """
        Initialize the assembler.

        Args:
            config: Configuration dictionary (uses ``export.redirect_hosts``
                and ``export.default_hero``)
            logger: Logger instance
        """
        self.config = config or {}
        self.logger = logger or logging.getLogger('wordpress_mdx_migrator.exporters.document_assembler')

        defaults = DEFAULT_CONFIG['export']
        self.redirect_hosts: List[str] = list(
            get_nested(self.config, 'export.redirect_hosts', defaults['redirect_hosts']) or []
        )
        self.default_hero: str = get_nested(self.config, 'export.default_hero', defaults['default_hero'])

    def redirect_path(self, link: str) -> str:
        """Strip the canonical host prefixes from a post link."""
        path = link or ''
        for host in self.redirect_hosts:
            path = path.replace(host, '', 1)
        return path

    @staticmethod
    def require_publication_date(record: ContentRecord) -> None:
        """Raise ValueError when the record has no usable publication date."""
        if record.published is None:
            raise ValueError(f"Record '{record.title}' has no parseable publication date")

    def build_front_matter(self, record: ContentRecord, hero: Optional[str] = None) -> FrontMatter:
        """
        Build the front matter for a record.

        Raises:
            ValueError: If the record has no usable publication date
        """
        self.require_publication_date(record)

        return FrontMatter(
            title=record.title,
            published=record.published,
            description=longest_description(record),
            redirect_from=[self.redirect_path(record.link)],
            categories=list(record.categories),
            hero=hero or self.default_hero
        )

    def assemble(self, record: ContentRecord, body: str, hero: Optional[str] = None) -> str:
        """
        Assemble the MDX document.

        Args:
            record: Source record (metadata only)
            body: Converted markdown body
            hero: Local hero reference, or None for the default hero

        Returns:
            Complete document text
        """
        front_matter = self.build_front_matter(record, hero)
        self.logger.debug(
            f"Assembled front matter for '{record.slug}' (hero: {front_matter.hero}, "
            f"categories: {len(front_matter.categories)})"
        )
        return front_matter.render() + (body or '')
