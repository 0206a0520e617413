"""Tests for the shortcode vocabulary and cleanup pass."""

import pytest
from bs4 import BeautifulSoup

from converters.shortcodes import (
    DroppedShortcode,
    EmbedShortcode,
    LatexShortcode,
    ShortcodeCleaner,
    WrapperShortcode,
    canonical_media_url,
    code_shortcode_language,
    lookup_shortcode,
    parse_attributes
)


def clean(markup):
    soup = BeautifulSoup(markup, 'html.parser')
    stats = ShortcodeCleaner().clean(soup)
    return str(soup), stats


class TestParseAttributes:
    def test_named_and_positional(self):
        named, positional = parse_attributes(' lang="js" title=\'Hi there\' width=300 https://x.com/a')
        assert named == {'lang': 'js', 'title': 'Hi there', 'width': '300'}
        assert positional == ['https://x.com/a']

    def test_equals_form(self):
        assert parse_attributes('=https://youtu.be/abc') == ({}, ['https://youtu.be/abc'])

    def test_curly_quotes(self):
        named, _ = parse_attributes(' id=“abc”')
        assert named == {'id': 'abc'}

    def test_code_shortcode_language(self):
        assert code_shortcode_language('code', ' lang="js"') == 'js'
        assert code_shortcode_language('sourcecode', ' language="python"') == 'python'
        assert code_shortcode_language('Python', '') == 'python'
        assert code_shortcode_language('code', '') == ''


class TestCanonicalMediaUrl:
    @pytest.mark.parametrize('url, expected', [
        ('https://www.youtube.com/embed/abc?rel=0', 'https://www.youtube.com/watch?v=abc'),
        ('//www.youtube-nocookie.com/embed/abc', 'https://www.youtube.com/watch?v=abc'),
        ('https://youtu.be/abc', 'https://www.youtube.com/watch?v=abc'),
        ('https://m.youtube.com/watch?v=abc&t=10', 'https://www.youtube.com/watch?v=abc'),
        ('https://player.vimeo.com/video/123?title=0', 'https://vimeo.com/123'),
        ('https://codepen.io/pen/x', 'https://codepen.io/pen/x'),
    ])
    def test_canonical(self, url, expected):
        assert canonical_media_url(url) == expected


class TestRegistry:
    def test_variants(self):
        assert isinstance(lookup_shortcode('caption'), WrapperShortcode)
        assert isinstance(lookup_shortcode('GALLERY'), DroppedShortcode)
        assert isinstance(lookup_shortcode('latex'), LatexShortcode)
        assert isinstance(lookup_shortcode('tweet'), EmbedShortcode)
        assert lookup_shortcode('unknown') is None

    def test_embed_urls_from_ids(self):
        assert EmbedShortcode('vimeo').url(' 42') == 'https://vimeo.com/42'
        assert EmbedShortcode('gist').url(' id="user/abc"') == 'https://gist.github.com/user/abc'
        assert EmbedShortcode('tweet').url(' 99') == 'https://twitter.com/i/status/99'
        assert EmbedShortcode('video').url(' mp4="https://x.com/a.mp4"') == 'https://x.com/a.mp4'
        assert EmbedShortcode('video').url('') is None


class TestShortcodeCleaner:
    """Test the cleanup pass on parsed trees."""

    def test_caption_wrapper_keeps_content(self):
        result, stats = clean(
            '<p>[caption id="attachment_1" align="alignnone" width="300"]'
            '<img src="./p/a.png"/> A caption[/caption]</p>'
        )
        assert result == '<p><img src="./p/a.png"/> A caption</p>'
        assert stats == {'caption': 2}

    def test_dropped_with_content(self):
        result, _ = clean('<p>Before [contact-form]fields[/contact-form] after</p>')
        assert result == '<p>Before  after</p>'

    def test_dropped_self_closing(self):
        result, _ = clean('<p>Intro[more]</p><p>[gallery ids="1,2,3"]</p>')
        assert result == '<p>Intro</p><p></p>'

    def test_latex_becomes_math_span(self):
        result, _ = clean('<p>Euler: [latex]e^{i\\pi}+1=0[/latex]</p>')
        assert result == '<p>Euler: <span class="wp-latex">e^{i\\pi}+1=0</span></p>'

    def test_unclosed_latex_left_alone(self):
        result, _ = clean('<p>[latex]x</p>')
        assert result == '<p>[latex]x</p>'

    def test_embed_shortcode_inline(self):
        result, _ = clean('<p>Watch [embed]https://youtu.be/abc[/embed] now</p>')
        url = 'https://www.youtube.com/watch?v=abc'
        assert result == f'<p>Watch <a href="{url}">{url}</a> now</p>'

    def test_unknown_brackets_untouched(self):
        markup = '<p>[not a shortcode] and [1] and arr[i]</p>'
        assert clean(markup) == (markup, {})

    def test_code_is_never_touched(self):
        markup = '<pre><code>[gallery] [caption]x[/caption]</code></pre><p><code>[more]</code></p>'
        assert clean(markup) == (markup, {})
