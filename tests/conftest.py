"""Shared fixtures for the migration tests."""

import copy
from pathlib import Path
from typing import Dict, List, Optional

import pytest

from config_loader import DEFAULT_CONFIG
from fetchers.image_fetcher import FetchedImage, infer_image_extension
from models import ImageDownloadError

PNG_BYTES = b'\x89PNG\r\n\x1a\n' + b'\x00' * 32
GIF_BYTES = b'GIF89a' + b'\x00' * 32
JPEG_BYTES = b'\xff\xd8\xff\xe0' + b'\x00' * 32


class FakeImageFetcher:
    """Serves canned payloads by URL and records every request."""

    def __init__(self, payloads: Optional[Dict[str, bytes]] = None):
        self.payloads = payloads or {}
        self.requested: List[str] = []

    def fetch(self, url: str) -> FetchedImage:
        self.requested.append(url)
        data = self.payloads.get(url)
        if data is None:
            raise ImageDownloadError(f"Failed to download {url}: 404 Not Found")
        return FetchedImage(url=url, extension=infer_image_extension('', data), data=data)

    def close(self) -> None:
        pass


WXR_TEMPLATE = """<?xml version="1.0" encoding="UTF-8" ?>
<rss version="2.0"
    xmlns:excerpt="http://wordpress.org/export/1.2/excerpt/"
    xmlns:content="http://purl.org/rss/1.0/modules/content/"
    xmlns:wfw="http://wellformedweb.org/CommentAPI/"
    xmlns:dc="http://purl.org/dc/elements/1.1/"
    xmlns:wp="http://wordpress.org/export/1.2/">
<channel>
    <title>Example Blog</title>
    <link>https://swizec.com</link>
{items}
</channel>
</rss>
"""

ITEM_TEMPLATE = """    <item>
        <title>{title}</title>
        <link>{link}</link>
        <pubDate>{pub_date}</pubDate>
        <dc:creator><![CDATA[swizec]]></dc:creator>
        <description>{description}</description>
        <content:encoded><![CDATA[{body}]]></content:encoded>
        <wp:post_id>{post_id}</wp:post_id>
        <wp:post_date><![CDATA[{post_date}]]></wp:post_date>
        <wp:status><![CDATA[publish]]></wp:status>
        <wp:post_type><![CDATA[{post_type}]]></wp:post_type>
{categories}{meta}    </item>"""


def build_item(
    title: str,
    body: str = '<p>Hello</p>',
    link: str = '',
    pub_date: str = 'Fri, 31 Jan 2020 10:00:00 +0000',
    post_date: str = '2020-01-31 10:00:00',
    post_type: str = 'post',
    description: str = '',
    categories=(),
    meta=(),
    post_id: int = 1
) -> str:
    category_xml = ''.join(
        f'        <category domain="category" nicename="{name.lower()}"><![CDATA[{name}]]></category>\n'
        for name in categories
    )
    meta_xml = ''.join(
        '        <wp:postmeta>\n'
        f'            <wp:meta_key><![CDATA[{key}]]></wp:meta_key>\n'
        f'            <wp:meta_value><![CDATA[{value}]]></wp:meta_value>\n'
        '        </wp:postmeta>\n'
        for key, value in meta
    )
    return ITEM_TEMPLATE.format(
        title=title,
        link=link or f"https://swizec.com/blog/{title.lower().replace(' ', '-')}",
        pub_date=pub_date,
        description=description,
        body=body,
        post_id=post_id,
        post_date=post_date,
        post_type=post_type,
        categories=category_xml,
        meta=meta_xml
    )


def build_export(*items: str) -> str:
    return WXR_TEMPLATE.format(items='\n'.join(items))


@pytest.fixture
def config():
    return copy.deepcopy(DEFAULT_CONFIG)


@pytest.fixture
def fake_fetcher():
    return FakeImageFetcher()


@pytest.fixture
def write_export(tmp_path):
    """Write an export document built from item snippets; returns its path."""
    def _write(*items: str) -> Path:
        path = tmp_path / 'export.xml'
        path.write_text(build_export(*items), encoding='utf-8')
        return path
    return _write


@pytest.fixture
def item():
    return build_item
