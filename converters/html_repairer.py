"""Repairs malformed post markup before it is parsed into a tree."""

import logging
import re
from typing import Dict, List, Tuple

from bs4 import BeautifulSoup

from .shortcodes import CODE_SHORTCODE_PATTERN

_CONTROL_CHARS = re.compile(r'[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]')
_GUTENBERG_COMMENT = re.compile(r'<!--\s*/?wp:.*?-->\n?', re.DOTALL)
_STRAY_LESS_THAN = re.compile(r'<(?![A-Za-z/!?])')
_PROTECTED_BLOCKS = re.compile(
    r'<(pre|script|style|textarea)\b.*?</\1\s*>',
    re.DOTALL | re.IGNORECASE
)
_PARAGRAPH_BREAK = re.compile(r'\n[ \t]*\n')
_PLACEHOLDER = '\x00{}\x00'
_PLACEHOLDER_PATTERN = re.compile(r'\x00(\d+)\x00')

_ALL_BLOCKS = (
    r'(?:table|thead|tfoot|caption|col|colgroup|tbody|tr|td|th|div|dl|dd|dt|ul|ol|li|pre|'
    r'form|map|area|blockquote|address|math|style|p|h[1-6]|hr|fieldset|legend|section|'
    r'article|aside|hgroup|header|footer|nav|figure|figcaption|details|menu|summary|'
    r'iframe|video|audio|object|embed|center)'
)

_TRACKED_TAGS = ('p', 'div', 'span', 'pre', 'code', 'blockquote', 'ul', 'ol', 'li', 'table', 'a', 'em', 'strong')


class HtmlRepairer:
    """
    Text-level repair of WordPress post markup.

    ``repair`` runs before parsing: it removes characters and comments that
    derail the parser, escapes source code held in code shortcodes, escapes
    ``<`` that cannot start a tag, and adds the paragraph markup WordPress
    normally generates at render time. ``repair_tree`` fixes list nesting
    once the markup is parsed.
    """

    def __init__(self, logger: logging.Logger = None):
        """Initialize repairer with optional logger."""
        self.logger = logger or logging.getLogger('wordpress_mdx_migrator.converters.html_repairer')

    def repair(self, markup: str) -> Tuple[str, List[str]]:
        """
        Repair raw markup.

        Args:
            markup: Raw post body

        Returns:
            Tuple of (repaired markup, repair warnings)
        """
        warnings: List[str] = []
        if not markup:
            return '', warnings

        text = markup.replace('\r\n', '\n').replace('\r', '\n')

        stripped = _CONTROL_CHARS.sub('', text)
        if stripped != text:
            warnings.append(f"Removed {len(text) - len(stripped)} control character(s)")
        text = stripped

        text = _GUTENBERG_COMMENT.sub('', text)
        text = CODE_SHORTCODE_PATTERN.sub(self._escape_code_shortcode, text)

        text, protected = self._protect_blocks(text)

        escaped = _STRAY_LESS_THAN.subn('&lt;', text)
        text = escaped[0]
        if escaped[1]:
            warnings.append(f"Escaped {escaped[1]} stray '<' character(s)")

        warnings.extend(self._unbalanced_tag_warnings(text))

        text = self._autop(text)
        text = self._restore_blocks(text, protected)

        for warning in warnings:
            self.logger.debug(f"Repair: {warning}")
        return text, warnings

    def repair_tree(self, soup: BeautifulSoup) -> int:
        """
        Fix lists that are direct children of other lists (invalid HTML).
        They are moved into the preceding ``<li>``.

        Returns:
            Number of lists moved
        """
        moved = 0
        for nested in soup.find_all(['ol', 'ul']):
            parent = nested.parent
            if parent is not None and parent.name in ('ol', 'ul'):
                prev_li = nested.find_previous_sibling('li')
                if prev_li is not None:
                    prev_li.append(nested.extract())
                    moved += 1

        if moved:
            self.logger.debug(f"Fixed {moved} nested list structure(s)")
        return moved

    @staticmethod
    def _escape_code_shortcode(match) -> str:
        body = match.group(3).replace('<', '&lt;').replace('>', '&gt;')
        return f'[{match.group(1)}{match.group(2)}]{body}[/{match.group(1)}]'

    @staticmethod
    def _protect_blocks(text: str) -> Tuple[str, Dict[int, str]]:
        """Swap blocks whose whitespace is significant for placeholders."""
        protected: Dict[int, str] = {}

        def stash(match) -> str:
            key = len(protected)
            protected[key] = match.group(0)
            return '\n\n' + _PLACEHOLDER.format(key) + '\n\n'

        text = _PROTECTED_BLOCKS.sub(stash, text)
        text = CODE_SHORTCODE_PATTERN.sub(stash, text)
        return text, protected

    @staticmethod
    def _restore_blocks(text: str, protected: Dict[int, str]) -> str:
        return _PLACEHOLDER_PATTERN.sub(lambda match: protected[int(match.group(1))], text)

    @staticmethod
    def _autop(text: str) -> str:
        """
        Add the paragraph markup WordPress generates at render time.

        Blank-line separated text becomes ``<p>`` elements, single newlines
        inside a paragraph become ``<br />``, and block-level markup is
        never wrapped.
        """
        if not text.strip():
            return ''

        # Newlines inside a tag are not line breaks
        text = re.sub(r'<[^<>]*>', lambda match: match.group(0).replace('\n', ' '), text)

        text = re.sub(r'(<%s[\s/>])' % _ALL_BLOCKS, r'\n\n\1', text, flags=re.IGNORECASE)
        text = re.sub(r'(</%s>)' % _ALL_BLOCKS, r'\1\n\n', text, flags=re.IGNORECASE)

        paragraphs = []
        for chunk in _PARAGRAPH_BREAK.split(text):
            chunk = chunk.strip()
            if not chunk:
                continue
            if _PLACEHOLDER_PATTERN.fullmatch(chunk):
                paragraphs.append(chunk)
                continue
            chunk = re.sub(r'[ \t]*\n[ \t]*', '<br />\n', chunk)
            paragraphs.append('<p>' + chunk + '</p>')

        text = '\n\n'.join(paragraphs)

        text = re.sub(r'<p>\s*</p>', '', text)
        text = re.sub(r'<p>\s*(</?%s\b[^>]*>)' % _ALL_BLOCKS, r'\1', text, flags=re.IGNORECASE)
        text = re.sub(r'(</?%s\b[^>]*>)\s*</p>' % _ALL_BLOCKS, r'\1', text, flags=re.IGNORECASE)
        text = re.sub(r'(</?%s\b[^>]*>)\s*<br />' % _ALL_BLOCKS, r'\1', text, flags=re.IGNORECASE)
        text = re.sub(r'<br />(\s*</?(?:p|li|div|dl|dd|dt|th|pre|td|ul|ol)[^>]*>)', r'\1', text, flags=re.IGNORECASE)

        return re.sub(r'\n{3,}', '\n\n', text).strip()

    @staticmethod
    def _unbalanced_tag_warnings(text: str) -> List[str]:
        warnings = []
        for tag in _TRACKED_TAGS:
            opened = len(re.findall(r'<%s(?:\s[^>]*)?>' % tag, text, re.IGNORECASE))
            closed = len(re.findall(r'</%s\s*>' % tag, text, re.IGNORECASE))
            if opened != closed:
                warnings.append(f"Unbalanced <{tag}>: {opened} opened, {closed} closed")
        return warnings
