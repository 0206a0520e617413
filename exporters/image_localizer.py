"""Image localizer: downloads remote images and rewrites body references."""

import html
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Dict, List, Optional, Set, Tuple
from urllib.parse import unquote, urlparse

from models import ImageAsset, ImageDownloadError


@dataclass
class LocalizationResult:
    """Body and assets produced by localizing one record."""

    body: str
    assets: List[ImageAsset] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)

    @property
    def names(self) -> List[str]:
        """Asset file names in first-seen order, without duplicates."""
        names: List[str] = []
        for asset in self.assets:
            if asset.file_name not in names:
                names.append(asset.file_name)
        return names


class ImageLocalizer:
    """
    Localizes the images of one record body.

    For every ``<img src>`` in the body, in order:

    1. Decode entities and trim the URL; skip relative, empty and already
       processed URLs
    2. Download through the image fetcher (one attempt)
    3. Name the file after the URL path stem plus the sniffed extension,
       suffixing ``-1``, ``-2``... when two URLs map to the same name
    4. Write it under the record's directory (created on first success)
    5. Replace every occurrence of the URL with ``./<directory>/<file>``

    A failed download leaves the URL untouched. Instances hold no per-record
    state, so one localizer can serve several worker threads.
    """

    IMG_SRC_PATTERN = re.compile(r'<img[^>]+src=["\']([^"\']+)["\']', re.IGNORECASE)
    UNSAFE_NAME_CHARS = re.compile(r'[^A-Za-z0-9._-]+')
    # A URL ends at whitespace, a quote, a tag bracket or a closing paren/bracket
    URL_END = r'(?![^\s"\'<>)\]])'

    def __init__(self, fetcher, logger: Optional[logging.Logger] = None):
        """
        Initialize the localizer.

        Args:
            fetcher: ImageFetcher (anything with ``fetch(url)``)
            logger: Logger instance
        """
        self.fetcher = fetcher
        self.logger = logger or logging.getLogger('wordpress_mdx_migrator.exporters.image_localizer')

    def localize(self, body: str, directory: Path) -> Tuple[str, List[str]]:
        """
        Localize all images referenced by ``<img>`` tags in the body.

        Args:
            body: Raw record markup
            directory: Per-record media directory

        Returns:
            Tuple of (rewritten body, asset file names)
        """
        result = self.localize_assets(body, directory)
        return result.body, result.names

    def localize_with_hero(
        self,
        body: str,
        directory: Path,
        hero_url: Optional[str]
    ) -> Tuple[str, List[str]]:
        """Localize a metadata hero URL first, then the body images."""
        result = self.localize_assets(body, directory, hero_url=hero_url)
        return result.body, result.names

    def localize_assets(
        self,
        body: str,
        directory: Path,
        hero_url: Optional[str] = None
    ) -> LocalizationResult:
        """
        Localize images and return the full result with asset details.

        Args:
            body: Raw record markup
            directory: Per-record media directory
            hero_url: Optional image URL from record metadata, handled first

        Returns:
            LocalizationResult with the rewritten body
        """
        result = LocalizationResult(body=body or '')
        if not body and not hero_url:
            return result

        directory = Path(directory)
        processed: Set[str] = set()
        taken_names: Dict[str, str] = {}

        candidates = [hero_url] if hero_url else []
        candidates.extend(match.group(1) for match in self.IMG_SRC_PATTERN.finditer(result.body))

        for raw_url in candidates:
            url = html.unescape(raw_url).strip()
            if not url or url in processed:
                continue
            processed.add(url)

            if not self._is_remote(url):
                self.logger.debug(f"Skipping non-remote image reference: {url}")
                continue

            asset = self._localize_one(url, directory, taken_names)
            if asset is None:
                result.failed.append(url)
                continue

            result.body = self._rewrite(result.body, raw_url.strip(), url, asset.relative_reference)
            result.assets.append(asset)

        if result.assets or result.failed:
            self.logger.info(
                f"Localized {len(result.assets)} image(s) into {directory.name}/"
                + (f", {len(result.failed)} failed" if result.failed else "")
            )
        return result

    def _localize_one(
        self,
        url: str,
        directory: Path,
        taken_names: Dict[str, str]
    ) -> Optional[ImageAsset]:
        self.logger.debug(f"Downloading image: {url}")
        try:
            fetched = self.fetcher.fetch(url)
        except ImageDownloadError as e:
            self.logger.warning(f"Image left remote: {e}")
            return None

        file_name = self._unique_name(self.build_file_name(url, fetched.extension), url, taken_names)

        try:
            directory.mkdir(parents=True, exist_ok=True)
            (directory / file_name).write_bytes(fetched.data)
        except OSError as e:
            self.logger.warning(f"Failed to save image {url} to {directory / file_name}: {e}")
            return None

        taken_names[file_name] = url
        self.logger.debug(f"Saved image: {directory / file_name}")

        return ImageAsset(
            url=url,
            file_name=file_name,
            extension=fetched.extension,
            directory=directory
        )

    @classmethod
    def build_file_name(cls, url: str, extension: str) -> str:
        """
        Derive a local file name from the URL path and the sniffed extension.

        ``https://host/img/photo.php?id=1`` serving PNG becomes ``photo.png``.
        """
        try:
            path = urlparse(url).path
        except ValueError:
            path = ''
        stem = PurePosixPath(unquote(path)).stem
        stem = cls.UNSAFE_NAME_CHARS.sub('-', stem).strip('-.')
        return f"{stem or 'image'}.{extension}"

    @staticmethod
    def _unique_name(file_name: str, url: str, taken_names: Dict[str, str]) -> str:
        if taken_names.get(file_name, url) == url:
            return file_name

        path = PurePosixPath(file_name)
        counter = 1
        candidate = f"{path.stem}-{counter}{path.suffix}"
        while candidate in taken_names:
            counter += 1
            candidate = f"{path.stem}-{counter}{path.suffix}"
        return candidate

    @staticmethod
    def _is_remote(url: str) -> bool:
        try:
            parsed = urlparse(url)
        except ValueError:
            return False
        return parsed.scheme in ('http', 'https') and bool(parsed.netloc)

    @classmethod
    def _rewrite(cls, body: str, raw_url: str, url: str, reference: str) -> str:
        """Replace every whole occurrence of the URL, decoded and raw."""
        for literal in {url, raw_url}:
            if literal:
                pattern = re.compile(re.escape(literal) + cls.URL_END)
                body = pattern.sub(lambda match: reference, body)
        return body
