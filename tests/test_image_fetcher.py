"""Tests for the HTTP image fetcher and format detection."""

import unittest
from unittest.mock import Mock, patch

import requests

from conftest import GIF_BYTES, JPEG_BYTES, PNG_BYTES
from fetchers.image_fetcher import ImageFetcher, detect_image_format, infer_image_extension
from models import ImageDownloadError


def make_response(content=b'', content_type='', status_error=None):
    response = Mock()
    response.content = content
    response.headers = {'Content-Type': content_type} if content_type else {}
    if status_error is not None:
        response.raise_for_status.side_effect = status_error
    else:
        response.raise_for_status.return_value = None
    return response


class TestFormatDetection(unittest.TestCase):
    def test_sniffs_magic_bytes(self):
        self.assertEqual(detect_image_format(PNG_BYTES), 'png')
        self.assertEqual(detect_image_format(GIF_BYTES), 'gif')
        self.assertEqual(detect_image_format(JPEG_BYTES), 'jpg')
        self.assertIsNone(detect_image_format(b'<html></html>'))

    def test_bytes_win_over_content_type(self):
        self.assertEqual(infer_image_extension('image/jpeg', PNG_BYTES), 'png')

    def test_content_type_fallback(self):
        self.assertEqual(infer_image_extension('image/svg+xml; charset=utf-8', b'<svg/>'), 'svg')
        self.assertEqual(infer_image_extension('image/jpeg', b'????'), 'jpg')
        self.assertIsNone(infer_image_extension('text/html', b'<html>'))
        self.assertIsNone(infer_image_extension('', b'<html>'))


class TestImageFetcher(unittest.TestCase):
    def setUp(self):
        self.fetcher = ImageFetcher()
        self.addCleanup(self.fetcher.close)

    def test_session_identity(self):
        session = self.fetcher.session
        self.assertIn('Chrome', session.headers['User-Agent'])
        self.assertTrue(session.verify)
        self.assertEqual(session.get_adapter('https://example.com').max_retries.total, 0)

    def test_insecure_only_when_configured(self):
        fetcher = ImageFetcher({'images': {'verify_ssl': False}})
        self.addCleanup(fetcher.close)
        self.assertFalse(fetcher.session.verify)

    def test_fetch_success(self):
        response = make_response(PNG_BYTES, 'image/png')
        with patch.object(requests.Session, 'get', return_value=response) as get:
            fetched = self.fetcher.fetch('https://example.com/photo.php?id=1')

        get.assert_called_once_with('https://example.com/photo.php?id=1', timeout=30)
        self.assertEqual(fetched.extension, 'png')
        self.assertEqual(fetched.data, PNG_BYTES)

    def test_http_error(self):
        response = make_response(b'', 'text/html', status_error=requests.HTTPError('404 Not Found'))
        with patch.object(requests.Session, 'get', return_value=response):
            with self.assertRaises(ImageDownloadError):
                self.fetcher.fetch('https://example.com/missing.png')

    def test_transport_error(self):
        with patch.object(requests.Session, 'get', side_effect=requests.ConnectionError('refused')):
            with self.assertRaises(ImageDownloadError):
                self.fetcher.fetch('https://example.com/a.png')

    def test_non_image_payload(self):
        response = make_response(b'<html>login</html>', 'text/html')
        with patch.object(requests.Session, 'get', return_value=response):
            with self.assertRaises(ImageDownloadError):
                self.fetcher.fetch('https://example.com/a.png')


if __name__ == '__main__':
    unittest.main()
