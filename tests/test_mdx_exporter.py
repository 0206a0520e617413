"""Tests for exporting single records to MDX files."""

from datetime import datetime

import pytest

from conftest import GIF_BYTES, PNG_BYTES, FakeImageFetcher
from exporters.image_localizer import ImageLocalizer
from exporters.mdx_exporter import MdxExporter
from models import ContentRecord, ConversionError, ConversionStatus


def make_record(body, title='My Post', **overrides):
    values = {
        'title': title,
        'body': body,
        'link': 'https://swizec.com/blog/my-post',
        'published': datetime(2021, 5, 4),
        'categories': ['Writing'],
    }
    values.update(overrides)
    return ContentRecord(**values)


@pytest.fixture
def make_exporter(config, tmp_path):
    def _make(payloads=None):
        fetcher = FakeImageFetcher(payloads)
        exporter = MdxExporter(config, tmp_path / 'out', ImageLocalizer(fetcher))
        return exporter, fetcher
    return _make


class TestMdxExporter:
    """Test the per-record pipeline end to end."""

    def test_writes_document_with_local_images(self, make_exporter, tmp_path):
        exporter, _ = make_exporter({'https://cdn.example.com/a.png': PNG_BYTES})
        record = make_record('<p>Intro</p><p><img src="https://cdn.example.com/a.png" alt="A"></p>')

        result = exporter.export(record)

        assert result.status == ConversionStatus.SUCCESS
        assert result.images == ['a.png']
        assert result.hero == './my-post/a.png'

        output = tmp_path / 'out' / 'my-post.mdx'
        assert result.output_path == str(output)
        assert output.read_text(encoding='utf-8') == (
            "---\n"
            "title: 'My Post'\n"
            "description: \"\"\n"
            "published: 2021-05-04\n"
            "redirect_from:\n"
            "  - /blog/my-post\n"
            "categories: \"Writing\"\n"
            "hero: ./my-post/a.png\n"
            "---\n"
            "Intro\n"
            "\n"
            "![A](./my-post/a.png)\n"
        )
        assert (tmp_path / 'out' / 'my-post' / 'a.png').read_bytes() == PNG_BYTES
        assert exporter.stats['images_saved'] == 1
        assert exporter.stats['records_exported'] == 1

    def test_gif_only_uses_default_hero(self, make_exporter, tmp_path):
        exporter, _ = make_exporter({'https://cdn.example.com/anim.gif': GIF_BYTES})

        result = exporter.export(make_record('<img src="https://cdn.example.com/anim.gif">'))

        assert result.hero is None
        content = (tmp_path / 'out' / 'my-post.mdx').read_text(encoding='utf-8')
        assert 'hero: ../../../defaultHero.jpg\n' in content
        assert '![](./my-post/anim.gif)' in content

    def test_metadata_hero_is_downloaded_first(self, make_exporter, tmp_path):
        exporter, fetcher = make_exporter({
            'https://cdn.example.com/og.png': PNG_BYTES,
            'https://cdn.example.com/body.gif': GIF_BYTES,
        })
        record = make_record(
            '<img src="https://cdn.example.com/body.gif">',
            metadata=[('_yoast_wpseo_opengraph-image', 'https://cdn.example.com/og.png')]
        )

        result = exporter.export(record)

        assert fetcher.requested[0] == 'https://cdn.example.com/og.png'
        assert result.images == ['og.png', 'body.gif']
        assert result.hero == './my-post/og.png'

    def test_failed_image_is_partial(self, make_exporter, tmp_path):
        exporter, _ = make_exporter()

        result = exporter.export(make_record('<p>See <img src="https://dead.example.com/x.png"></p>'))

        assert result.status == ConversionStatus.PARTIAL
        assert result.succeeded
        assert 'Image left remote: https://dead.example.com/x.png' in result.warnings
        content = (tmp_path / 'out' / 'my-post.mdx').read_text(encoding='utf-8')
        assert '(https://dead.example.com/x.png)' in content
        assert not (tmp_path / 'out' / 'my-post').exists()
        assert exporter.stats['images_failed'] == 1

    def test_missing_date_fails_record(self, make_exporter, tmp_path):
        exporter, fetcher = make_exporter({'https://cdn.example.com/a.png': PNG_BYTES})

        result = exporter.export(make_record('<img src="https://cdn.example.com/a.png">', published=None))

        assert result.status == ConversionStatus.FAILED
        assert 'publication date' in result.error
        assert not (tmp_path / 'out' / 'my-post.mdx').exists()
        assert exporter.stats['records_failed'] == 1
        assert fetcher.requested == []
        assert not (tmp_path / 'out' / 'my-post').exists()

    def test_conversion_error_fails_record(self, make_exporter, monkeypatch):
        exporter, _ = make_exporter()

        def explode(self, body):
            raise ConversionError('bad markup')

        monkeypatch.setattr('converters.markdown_converter.MarkdownConverter.convert_record_body', explode)

        result = exporter.export(make_record('<p>x</p>'))

        assert result.status == ConversionStatus.FAILED
        assert result.error == 'Conversion failed: bad markup'

    def test_malformed_image_url_does_not_fail_record(self, make_exporter, tmp_path):
        exporter, _ = make_exporter({'https://cdn.example.com/ok.png': PNG_BYTES})
        record = make_record('<img src="https://[broken/x.png"><img src="https://cdn.example.com/ok.png"><p>Body</p>')

        result = exporter.export(record)

        assert result.status == ConversionStatus.SUCCESS
        assert result.images == ['ok.png']
        assert (tmp_path / 'out' / 'my-post' / 'ok.png').exists()
