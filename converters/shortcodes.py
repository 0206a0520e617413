"""WordPress shortcode vocabulary and the cleanup pass for leftover shortcodes.

Shortcodes are a closed set of variants. Each variant owns the rule for
its tokens:

- WrapperShortcode: tokens removed, enclosed content kept (``[caption]``)
- DroppedShortcode: removed together with enclosed content (``[gallery]``)
- LatexShortcode: ``[latex]x[/latex]`` becomes inline math ``$x$``
- EmbedShortcode: replaced by a link to the embedded resource

Bracketed text that is not a known shortcode is never touched.
"""

import logging
import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple, Union
from urllib.parse import parse_qs, urlparse

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import Comment

# Shortcodes whose body is source code. The generic names take a
# lang/language attribute; the others name the language themselves.
GENERIC_CODE_SHORTCODES = ('sourcecode', 'source', 'code')
LANGUAGE_CODE_SHORTCODES = (
    'javascript', 'typescript', 'python', 'csharp', 'jsx', 'tsx', 'ruby', 'bash',
    'shell', 'json', 'yaml', 'java', 'cpp', 'diff', 'html', 'php', 'css', 'sql',
    'xml', 'js', 'ts', 'py', 'go'
)

CODE_SHORTCODE_PATTERN = re.compile(
    r'\[(%s)(?=[\s\]=])([^\]]*)\](.*?)\[/\1\]'
    % '|'.join(GENERIC_CODE_SHORTCODES + LANGUAGE_CODE_SHORTCODES),
    re.DOTALL | re.IGNORECASE
)

SHORTCODE_TOKEN_PATTERN = re.compile(r'\[(/)?([A-Za-z][\w-]*)(?=[\s=\]/])([^\[\]]*?)/?\]')

_ATTRIBUTE_PATTERN = re.compile(
    r'([\w-]+)\s*=\s*["“”]([^"“”]*)["“”]'
    r"|([\w-]+)\s*=\s*'([^']*)'"
    r'|([\w-]+)\s*=\s*([^\s\'"]+)'
    r'|["“”]([^"“”]*)["“”]'
    r'|(\S+)'
)

_NODE = Union[str, Tag]


def parse_attributes(text: str) -> Tuple[Dict[str, str], List[str]]:
    """
    Parse shortcode attribute text into named and positional values.

    ``=value`` directly after the name (``[youtube=URL]``) is returned as
    the first positional value.
    """
    named: Dict[str, str] = {}
    positional: List[str] = []
    text = (text or '').strip()

    if text.startswith('='):
        value = text[1:].strip().strip('"\'')
        return named, [value] if value else []

    for match in _ATTRIBUTE_PATTERN.finditer(text):
        if match.group(1):
            named[match.group(1).lower()] = match.group(2)
        elif match.group(3):
            named[match.group(3).lower()] = match.group(4)
        elif match.group(5):
            named[match.group(5).lower()] = match.group(6)
        elif match.group(7) is not None:
            positional.append(match.group(7))
        elif match.group(8):
            positional.append(match.group(8))

    return named, positional


def code_shortcode_language(name: str, attributes: str) -> str:
    """Language hint for a code shortcode, before alias normalization."""
    if name.lower() not in GENERIC_CODE_SHORTCODES:
        return name.lower()
    named, _ = parse_attributes(attributes)
    return named.get('lang') or named.get('language') or ''


def canonical_media_url(url: str) -> str:
    """
    Canonical public URL for an embedded player URL.

    YouTube embed/short links become ``watch?v=`` links and Vimeo player
    links become ``vimeo.com/<id>``. Other URLs are returned unchanged.
    """
    url = (url or '').strip()
    if url.startswith('//'):
        url = 'https:' + url

    parsed = urlparse(url)
    host = parsed.netloc.lower()
    if host.startswith('www.'):
        host = host[4:]

    if host in ('youtube.com', 'youtube-nocookie.com', 'm.youtube.com'):
        if parsed.path.startswith('/embed/') or parsed.path.startswith('/v/'):
            video_id = parsed.path.split('/')[2]
            if video_id:
                return f'https://www.youtube.com/watch?v={video_id}'
        if parsed.path == '/watch':
            video_id = parse_qs(parsed.query).get('v', [''])[0]
            if video_id:
                return f'https://www.youtube.com/watch?v={video_id}'
    elif host == 'youtu.be':
        video_id = parsed.path.strip('/')
        if video_id:
            return f'https://www.youtube.com/watch?v={video_id}'
    elif host == 'player.vimeo.com' and parsed.path.startswith('/video/'):
        video_id = parsed.path.split('/')[2]
        if video_id:
            return f'https://vimeo.com/{video_id}'

    return url


@dataclass(frozen=True)
class WrapperShortcode:
    """Layout shortcode: tokens removed, enclosed content kept."""

    name: str

    def apply(self, match, text: str, soup: BeautifulSoup) -> Tuple[int, List[_NODE]]:
        return match.end(), []


@dataclass(frozen=True)
class DroppedShortcode:
    """Shortcode with no static equivalent; removed with its content."""

    name: str

    def apply(self, match, text: str, soup: BeautifulSoup) -> Tuple[int, List[_NODE]]:
        if not match.group(1):
            close = _find_close(self.name, text, match.end())
            if close is not None:
                return close.end(), []
        return match.end(), []


@dataclass(frozen=True)
class LatexShortcode:
    """``[latex]x[/latex]`` rendered as inline math."""

    name: str

    def apply(self, match, text: str, soup: BeautifulSoup) -> Tuple[int, List[_NODE]]:
        if match.group(1):
            return match.end(), []

        close = _find_close(self.name, text, match.end())
        if close is None:
            return match.end(), [match.group(0)]

        math = soup.new_tag('span', attrs={'class': 'wp-latex'})
        math.string = text[match.end():close.start()].strip()
        return close.end(), [math]


@dataclass(frozen=True)
class EmbedShortcode:
    """Embedded media shortcode rewritten to a link."""

    name: str

    def apply(self, match, text: str, soup: BeautifulSoup) -> Tuple[int, List[_NODE]]:
        if match.group(1):
            return match.end(), []

        end = match.end()
        content = ''
        close = _find_close(self.name, text, match.end())
        if close is not None:
            content = text[match.end():close.start()].strip()
            end = close.end()

        url = self.url(match.group(3), content)
        if not url:
            return end, []
        return end, [build_link(soup, url)]

    def url(self, attributes: str, content: str = '') -> Optional[str]:
        """Resolve the embedded resource URL from content or attributes."""
        named, positional = parse_attributes(attributes)

        candidates = [content]
        candidates.extend(
            named.get(key, '') for key in
            ('url', 'src', 'href', 'mp4', 'm4v', 'webm', 'mp3', 'ogg', 'm4a', 'wav', 'id', 'v')
        )
        candidates.extend(positional)

        value = next((candidate.strip() for candidate in candidates if candidate and candidate.strip()), '')
        if not value:
            return None

        if not value.startswith(('http://', 'https://', '//')):
            value = self._url_from_id(value)
            if value is None:
                return None

        return canonical_media_url(value)

    def _url_from_id(self, value: str) -> Optional[str]:
        if self.name == 'youtube':
            return f'https://www.youtube.com/watch?v={value}'
        if self.name == 'vimeo' and value.isdigit():
            return f'https://vimeo.com/{value}'
        if self.name == 'gist':
            return f'https://gist.github.com/{value}'
        if self.name == 'tweet' and value.isdigit():
            return f'https://twitter.com/i/status/{value}'
        return None


Shortcode = Union[WrapperShortcode, DroppedShortcode, LatexShortcode, EmbedShortcode]

WRAPPER_SHORTCODES = (
    'caption', 'wp_caption', 'column', 'columns', 'one_half', 'one_half_last',
    'one_third', 'one_third_last', 'two_third', 'two_third_last', 'one_fourth',
    'one_fourth_last', 'three_fourth', 'three_fourth_last', 'box', 'center',
    'highlight', 'dropcap', 'pullquote'
)
DROPPED_SHORTCODES = (
    'more', 'gallery', 'contact-form', 'contact-field', 'contact-form-7', 'playlist',
    'wpforms', 'mc4wp_form', 'jetpack_subscription_form', 'subscribe', 'toc', 'adsense'
)
LATEX_SHORTCODES = ('latex',)
EMBED_SHORTCODES = (
    'embed', 'youtube', 'vimeo', 'tweet', 'gist', 'video', 'audio', 'soundcloud', 'instagram'
)


def _build_registry() -> Dict[str, Shortcode]:
    registry: Dict[str, Shortcode] = {}
    registry.update((name, WrapperShortcode(name)) for name in WRAPPER_SHORTCODES)
    registry.update((name, DroppedShortcode(name)) for name in DROPPED_SHORTCODES)
    registry.update((name, LatexShortcode(name)) for name in LATEX_SHORTCODES)
    registry.update((name, EmbedShortcode(name)) for name in EMBED_SHORTCODES)
    return registry


SHORTCODES: Dict[str, Shortcode] = _build_registry()


def lookup_shortcode(name: str) -> Optional[Shortcode]:
    return SHORTCODES.get((name or '').lower())


def _find_close(name: str, text: str, start: int):
    return re.compile(r'\[/%s\s*\]' % re.escape(name), re.IGNORECASE).search(text, start)


def build_link(soup: BeautifulSoup, url: str) -> Tag:
    """An ``<a>`` whose text is its own URL."""
    link = soup.new_tag('a', href=url)
    link.string = url
    return link


class ShortcodeCleaner:
    """Rewrites recognized shortcodes found in text nodes outside code."""

    SKIP_PARENTS = {'pre', 'code', 'kbd', 'samp', 'script', 'style'}

    def __init__(self, logger: logging.Logger = None):
        """Initialize shortcode cleaner with optional logger."""
        self.logger = logger or logging.getLogger('wordpress_mdx_migrator.converters.shortcodes')

    def clean(self, soup: BeautifulSoup) -> Dict[str, int]:
        """
        Rewrite shortcodes in place.

        Args:
            soup: Parsed record body

        Returns:
            Count of rewritten tokens per shortcode name
        """
        stats: Dict[str, int] = {}

        for text_node in list(soup.find_all(string=True)):
            if isinstance(text_node, Comment) or '[' not in text_node:
                continue
            if self._inside_code(text_node):
                continue

            nodes = self.rewrite_text(str(text_node), soup, stats)
            if nodes is None:
                continue

            replacements = [
                NavigableString(node) if isinstance(node, str) else node
                for node in nodes if not isinstance(node, str) or node
            ]
            if replacements:
                text_node.replace_with(*replacements)
            else:
                text_node.extract()

        if stats:
            self.logger.debug(f"Shortcodes rewritten: {stats}")
        return stats

    def rewrite_text(
        self,
        text: str,
        soup: BeautifulSoup,
        stats: Optional[Dict[str, int]] = None
    ) -> Optional[List[_NODE]]:
        """
        Split text into plain strings and replacement tags.

        Returns None when the text contains no recognized shortcode.
        """
        nodes: List[_NODE] = []
        position = 0
        changed = False

        while True:
            match = SHORTCODE_TOKEN_PATTERN.search(text, position)
            if match is None:
                break

            shortcode = lookup_shortcode(match.group(2))
            if shortcode is None:
                nodes.append(text[position:match.end()])
                position = match.end()
                continue

            nodes.append(text[position:match.start()])
            position, replacement = shortcode.apply(match, text, soup)
            nodes.extend(replacement)
            changed = True

            if stats is not None:
                stats[shortcode.name] = stats.get(shortcode.name, 0) + 1

        if not changed:
            return None

        nodes.append(text[position:])
        return nodes

    def _inside_code(self, node) -> bool:
        parent = node.parent
        while parent is not None:
            if parent.name in self.SKIP_PARENTS:
                return True
            parent = parent.parent
        return False
