"""Reader for WordPress WXR export documents."""

import os
from typing import List, Optional, Tuple

from bs4 import BeautifulSoup, Tag

from models import ContentRecord, ExportReadError

from .base_fetcher import BaseFetcher


class WordPressExportReader(BaseFetcher):
    """
    Parses a WXR export file into an ordered list of ContentRecords.

    Only items whose ``wp:post_type`` is one of ``export.post_types`` are
    returned. Attachments, pages and navigation items are skipped.
    """

    def fetch(self, source: str) -> List[ContentRecord]:
        """
        Read and parse the export file.

        Args:
            source: Path to the export XML file

        Returns:
            Records in document order

        Raises:
            ExportReadError: If the file is missing or has no channel
        """
        if not os.path.isfile(source):
            raise ExportReadError(f"Export file not found: {source}")

        try:
            with open(source, 'rb') as f:
                data = f.read()
        except OSError as e:
            raise ExportReadError(f"Failed to read export file {source}: {e}") from e

        self.logger.info(f"Parsing export file: {source} ({len(data)} bytes)")
        return self.parse(data)

    def parse(self, data) -> List[ContentRecord]:
        """Parse export document bytes or text into records."""
        soup = BeautifulSoup(data, 'xml')
        channel = soup.find('channel')
        if channel is None:
            raise ExportReadError("Export document has no <channel> element")

        post_types = set(self._setting('export.post_types', ['post']))
        items = channel.find_all('item', recursive=False)

        records = []
        skipped = 0
        for index, item in enumerate(items):
            post_type = self._child_text(item, 'wp:post_type') or ''
            if post_type not in post_types:
                skipped += 1
                continue

            record = self._parse_item(item)
            if record is None:
                self.logger.warning(f"Skipping item {index}: no title or body")
                skipped += 1
                continue
            records.append(record)

        self.logger.info(
            f"Parsed {len(items)} items: {len(records)} records, {skipped} skipped"
        )
        return records

    def _parse_item(self, item: Tag) -> Optional[ContentRecord]:
        title = self._child_text(item, 'title')
        body = self._child_text(item, 'content:encoded')
        if title is None and body is None:
            return None

        return ContentRecord(
            title=title or '',
            body=body or '',
            link=(self._child_text(item, 'link') or '').strip(),
            published=self._published(item),
            description=(self._child_text(item, 'description') or '').strip(),
            categories=self._categories(item),
            metadata=self._metadata(item),
            post_id=self._child_text(item, 'wp:post_id'),
            post_type=self._child_text(item, 'wp:post_type') or 'post',
            status=self._child_text(item, 'wp:status'),
            creator=self._child_text(item, 'dc:creator'),
        )

    def _published(self, item: Tag):
        """Publish date from pubDate, falling back to wp:post_date."""
        published = self._parse_date(self._child_text(item, 'pubDate'))
        if published is None:
            published = self._parse_date(self._child_text(item, 'wp:post_date'))
        return published

    @staticmethod
    def _categories(item: Tag) -> List[str]:
        categories = []
        for category in item.find_all('category', recursive=False):
            name = category.get_text().strip()
            if name and name not in categories:
                categories.append(name)
        return categories

    def _metadata(self, item: Tag) -> List[Tuple[str, str]]:
        entries = []
        for meta in item.find_all('wp:postmeta', recursive=False):
            key = self._child_text(meta, 'wp:meta_key')
            if not key:
                continue
            entries.append((key, self._child_text(meta, 'wp:meta_value') or ''))
        return entries

    @staticmethod
    def _child_text(element: Tag, name: str) -> Optional[str]:
        child = element.find(name, recursive=False)
        if child is None:
            return None
        return child.get_text()
