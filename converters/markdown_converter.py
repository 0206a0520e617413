"""Markdown converter orchestrator for WordPress post markup to MDX."""

import logging
import re
from typing import Any, Dict, List, Optional, Tuple

from bs4 import BeautifulSoup
from markdownify import MarkdownConverter as MarkdownifyConverter

from models import ConversionError

from .code_block_normalizer import CodeBlockNormalizer
from .embed_normalizer import EmbedNormalizer
from .html_repairer import HtmlRepairer
from .markdown_formatter import MarkdownFormatter
from .shortcodes import ShortcodeCleaner

logger = logging.getLogger('wordpress_mdx_migrator.converters.markdown_converter')

_URL_START = re.compile(r'https?://')
_MDX_SPECIAL = re.compile(r'([{}<])')


def unescape_url_underscores(markdown: str) -> str:
    """
    Undo underscore escaping after a URL on the same line.

    On every newline-terminated line, ``\\_`` following the start of an
    ``http(s)://`` URL becomes ``_``. The last line is left alone when the
    text does not end with a newline.
    """
    lines = markdown.split('\n')
    for index in range(len(lines) - 1):
        line = lines[index]
        match = _URL_START.search(line)
        if match is None or '\\_' not in line[match.end():]:
            continue
        lines[index] = line[:match.end()] + line[match.end():].replace('\\_', '_')
    return '\n'.join(lines)


class MarkdownConverter(MarkdownifyConverter):
    """
    Converts one post body to MDX markdown.

    This class extends markdownify.MarkdownConverter with:
    - markup repair and WordPress paragraph handling before parsing
    - code block and embed normalization on the parsed tree
    - shortcode cleanup right before serialization
    - MDX-safe escaping and a final formatting pass
    """

    def __init__(self, logger: logging.Logger = None, config: Dict[str, Any] = None, **kwargs):
        """Initialize markdown converter with logger and configuration."""
        markdownify_options = {
            'heading_style': 'ATX',
            'bullets': '-',
            'strong_em_symbol': '*',
            'escape_asterisks': True,
            'escape_underscores': True,
            'autolinks': False,
            'newline_style': 'backslash',
            'table_infer_header': True,
        }

        markdownify_options.update(kwargs)
        super().__init__(**markdownify_options)

        self.logger = logger or logging.getLogger('wordpress_mdx_migrator.converters.markdown_converter')
        self.config = config or {}

        self.repairer = HtmlRepairer(self.logger)
        self.code_normalizer = CodeBlockNormalizer(self.logger)
        self.embed_normalizer = EmbedNormalizer(self.logger)
        self.shortcode_cleaner = ShortcodeCleaner(self.logger)
        self.formatter = MarkdownFormatter(self.logger)

    def convert_record_body(self, body: str) -> Tuple[str, List[str]]:
        """
        Convert a post body with the full pipeline.

        Args:
            body: Post markup with images already localized

        Returns:
            Tuple of (formatted markdown, conversion warnings)

        Raises:
            ConversionError: If any stage fails
        """
        try:
            # Step 1: Repair raw markup
            repaired, warnings = self.repairer.repair(body or '')

            # Step 2: Parse into a fragment and fix list nesting
            soup = self._parse_fragment(repaired)
            self.repairer.repair_tree(soup)

            # Step 3-4: Normalize code blocks and embeds
            self.code_normalizer.normalize(soup)
            self.embed_normalizer.normalize(soup)

            # Step 5-7: Clean shortcodes and serialize
            self.shortcode_cleaner.clean(soup)
            markdown = self.convert_soup(soup)

            # Step 8-9: Text fixes and formatting
            markdown = unescape_url_underscores(markdown + '\n')
            markdown = self.formatter.format(markdown)

        except ConversionError:
            raise
        except Exception as e:
            self.logger.error(f"Markdown conversion failed: {str(e)}")
            raise ConversionError(f"Markdown conversion failed: {e}") from e

        return markdown, warnings

    def _parse_fragment(self, markup: str) -> BeautifulSoup:
        """Parse markup with lxml and drop the implied html/head/body wrapper."""
        soup = BeautifulSoup(markup, 'lxml')

        if soup.head is not None:
            soup.head.decompose()
        if soup.body is not None:
            soup.body.unwrap()
        if soup.html is not None:
            soup.html.unwrap()

        return soup

    # Custom markdownify converters
    def escape(self, text, parent_tags=None):
        """Escape markdown syntax and the characters MDX treats as JSX."""
        text = super().escape(text, parent_tags)
        return _MDX_SPECIAL.sub(r'\\\1', text) if text else text

    def convert_pre(self, el, text, parent_tags=None, **kwargs):
        """Fenced code block with the language from the normalized code class."""
        code_el = el.find('code')
        language = self.code_normalizer.language_of(code_el if code_el is not None else el)
        code_text = (code_el if code_el is not None else el).get_text()
        code_text = code_text.strip('\n').rstrip()

        if not code_text.strip():
            return ''

        longest = max((len(run) for run in re.findall(r'`{3,}', code_text)), default=2)
        fence = '`' * (longest + 1)
        return f"\n\n{fence}{language}\n{code_text}\n{fence}\n\n"

    def convert_code(self, el, text, parent_tags=None, **kwargs):
        """Handle inline code and code blocks."""
        parent = el.parent
        if parent is not None and parent.name == 'pre':
            return text
        return super().convert_code(el, text, parent_tags or set())

    def convert_img(self, el, text, parent_tags=None, **kwargs):
        """Handle images, falling back to the title for missing alt text."""
        src = el.get('src', '')
        alt = el.get('alt', '') or el.get('title', '')
        if not src:
            return alt

        alt = self.escape(alt, parent_tags or set())
        alt = alt.replace('[', '\\[').replace(']', '\\]')
        return f'![{alt}]({src.replace(" ", "%20")})'

    def convert_span(self, el, text, parent_tags=None, **kwargs):
        """Render math produced by the latex shortcode as inline math."""
        classes = el.get('class', [])
        if 'wp-latex' in classes:
            # Left unescaped: remark-math owns everything between the dollars
            return f"${el.get_text()}$"
        return text
