"""HTTP fetcher for remote images referenced in post bodies."""

import threading
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import filetype
import requests
import urllib3
from requests.adapters import HTTPAdapter

from config_loader import DEFAULT_CONFIG
from models import ImageDownloadError

from .base_fetcher import BaseFetcher


def detect_image_format(data: bytes) -> Optional[str]:
    """Detect image type from magic bytes; returns lowercase extension."""
    kind = filetype.guess(data)
    if kind and kind.mime.startswith("image/"):
        ext = kind.extension.lower()
        if ext == "jpeg":
            return "jpg"
        return ext
    return None


def infer_image_extension(content_type: Optional[str], data: bytes) -> Optional[str]:
    """Guess an image file extension from the file signature or HTTP metadata."""
    detected = detect_image_format(data)
    if detected:
        return detected
    if not content_type:
        return None
    parts = content_type.split(";")[0].split("/")
    if len(parts) == 2 and parts[0].strip().lower() == "image":
        ext = parts[1].strip().lower()
        if ext == "jpeg":
            ext = "jpg"
        elif ext == "svg+xml":
            ext = "svg"
        return ext or None
    return None


@dataclass(frozen=True)
class FetchedImage:
    """Payload of one successful image download."""

    url: str
    extension: str
    content_type: str = ''
    data: bytes = field(default=b'', repr=False)


class ImageFetcher(BaseFetcher):
    """
    Downloads images with a browser-like identity, one attempt per URL.

    Certificate verification follows ``images.verify_ssl`` and is only
    disabled on explicit request.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None, logger=None):
        super().__init__(config, logger)

        defaults = DEFAULT_CONFIG['images']
        self.verify_ssl = bool(self._setting('images.verify_ssl', defaults['verify_ssl']))
        self.timeout = self._setting('images.timeout', defaults['timeout'])
        self.user_agent = self._setting('images.user_agent', defaults['user_agent'])
        self._local = threading.local()
        self._sessions = []
        self._sessions_lock = threading.Lock()

        if not self.verify_ssl:
            self.logger.warning("SSL verification disabled for image downloads - this is insecure!")
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

    @property
    def session(self) -> requests.Session:
        """Per-thread session so workers never share connection state."""
        session = getattr(self._local, 'session', None)
        if session is None:
            session = requests.Session()
            session.headers['User-Agent'] = self.user_agent
            session.verify = self.verify_ssl

            # No retries: a dead URL costs exactly one request
            adapter = HTTPAdapter(max_retries=0)
            session.mount("http://", adapter)
            session.mount("https://", adapter)
            self._local.session = session
            with self._sessions_lock:
                self._sessions.append(session)
        return session

    def fetch(self, source: str) -> FetchedImage:
        """
        Download one image.

        Args:
            source: Absolute http(s) URL

        Returns:
            FetchedImage with sniffed extension

        Raises:
            ImageDownloadError: On transport errors, non-2xx status, or a
                payload that is not recognizably an image
        """
        try:
            response = self.session.get(source, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise ImageDownloadError(f"Failed to download {source}: {e}") from e

        data = response.content
        content_type = response.headers.get('Content-Type', '')
        extension = infer_image_extension(content_type, data)
        if not extension:
            raise ImageDownloadError(
                f"Not an image: {source} (Content-Type={content_type or 'unknown'})"
            )

        self.logger.debug(f"Downloaded {source}: {len(data)} bytes, .{extension}")
        return FetchedImage(url=source, extension=extension, content_type=content_type, data=data)

    def close(self) -> None:
        """Close the sessions opened by every worker thread."""
        with self._sessions_lock:
            sessions, self._sessions = self._sessions, []
        for session in sessions:
            session.close()
        self._local = threading.local()
