"""Converters package for WordPress post markup to MDX conversion."""

from .code_block_normalizer import CodeBlockNormalizer, normalize_language
from .embed_normalizer import EmbedNormalizer
from .html_repairer import HtmlRepairer
from .markdown_converter import MarkdownConverter, unescape_url_underscores
from .markdown_formatter import MarkdownFormatter
from .shortcodes import (
    DroppedShortcode,
    EmbedShortcode,
    LatexShortcode,
    Shortcode,
    ShortcodeCleaner,
    WrapperShortcode,
    lookup_shortcode
)

__all__ = [
    'CodeBlockNormalizer',
    'DroppedShortcode',
    'EmbedNormalizer',
    'EmbedShortcode',
    'HtmlRepairer',
    'LatexShortcode',
    'MarkdownConverter',
    'MarkdownFormatter',
    'Shortcode',
    'ShortcodeCleaner',
    'WrapperShortcode',
    'lookup_shortcode',
    'normalize_language',
    'unescape_url_underscores'
]
