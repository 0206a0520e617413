"""Code block normalizer for WordPress code plugins and shortcodes."""

import logging
import re
from typing import Optional

from bs4 import BeautifulSoup, NavigableString, Tag

from .shortcodes import CODE_SHORTCODE_PATTERN, code_shortcode_language

# Map plugin language names to fenced-code info strings
LANGUAGE_ALIASES = {
    'js': 'javascript',
    'jscript': 'javascript',
    'javascript': 'javascript',
    'es6': 'javascript',
    'node': 'javascript',
    'jsx': 'jsx',
    'ts': 'typescript',
    'typescript': 'typescript',
    'tsx': 'tsx',
    'py': 'python',
    'python': 'python',
    'rb': 'ruby',
    'ruby': 'ruby',
    'sh': 'bash',
    'shell': 'bash',
    'bash': 'bash',
    'console': 'bash',
    'zsh': 'bash',
    'yml': 'yaml',
    'yaml': 'yaml',
    'json': 'json',
    'xml': 'xml',
    'xhtml': 'html',
    'html': 'html',
    'markup': 'html',
    'css': 'css',
    'scss': 'scss',
    'sql': 'sql',
    'php': 'php',
    'java': 'java',
    'go': 'go',
    'golang': 'go',
    'c': 'c',
    'cpp': 'cpp',
    'c++': 'cpp',
    'csharp': 'csharp',
    'c#': 'csharp',
    'cs': 'csharp',
    'diff': 'diff',
    'patch': 'diff',
    'text': '',
    'plain': '',
    'plaintext': '',
    'none': '',
}

_BRUSH_PATTERN = re.compile(r'brush\s*:\s*([\w+#-]+)', re.IGNORECASE)
_LANGUAGE_CLASS_PATTERN = re.compile(r'^(?:language|lang)-([\w+#-]+)$', re.IGNORECASE)


def normalize_language(language: Optional[str]) -> str:
    """Normalize a language hint; unknown names pass through lowercased."""
    if not language:
        return ''
    language = language.strip().strip('"\'').lower()
    return LANGUAGE_ALIASES.get(language, language)


class CodeBlockNormalizer:
    """
    Rewrites WordPress code containers into ``<pre><code class="language-x">``.

    Recognized forms:

    - SyntaxHighlighter ``<pre class="brush: js">``
    - WP-Syntax ``<pre lang="js">`` and ``data-lang``/``language`` attributes
    - Gutenberg ``wp-block-code`` and ``wp-block-syntaxhighlighter-code``
    - bare ``<code>`` spanning several lines
    - ``[code lang="js"]...[/code]`` family shortcodes left as text
    """

    def __init__(self, logger: logging.Logger = None):
        """Initialize code block normalizer with optional logger."""
        self.logger = logger or logging.getLogger('wordpress_mdx_migrator.converters.code_blocks')

    def normalize(self, soup: BeautifulSoup) -> int:
        """
        Normalize every code block in the tree.

        Args:
            soup: Parsed record body

        Returns:
            Number of code blocks normalized
        """
        shortcodes = self._normalize_shortcodes(soup)
        if shortcodes:
            self.logger.debug(f"Converted {shortcodes} code shortcode(s)")
        self._normalize_multiline_code(soup)

        count = 0
        for pre in list(soup.find_all('pre')):
            self._canonicalize_pre(soup, pre)
            count += 1

        self.logger.debug(f"Normalized {count} code block(s)")
        return count

    def language_of(self, element: Tag) -> str:
        """Find a language hint on a pre/code element or its wrappers."""
        candidates = [element]
        if element.name == 'code' and element.parent is not None and element.parent.name == 'pre':
            candidates.append(element.parent)
        if element.name == 'pre':
            code = element.find('code')
            if code is not None:
                candidates.insert(0, code)

        for candidate in candidates:
            language = self._language_from_attributes(candidate)
            if language is not None:
                return normalize_language(language)

        # Gutenberg SyntaxHighlighter block keeps the brush on the wrapper
        wrapper = element.find_parent('div', class_='wp-block-syntaxhighlighter-code')
        if wrapper is not None:
            language = self._language_from_attributes(wrapper)
            if language is not None:
                return normalize_language(language)

        return ''

    def _language_from_attributes(self, element: Tag) -> Optional[str]:
        for attribute in ('lang', 'data-lang', 'language', 'data-language'):
            if element.get(attribute):
                return element.get(attribute)

        classes = element.get('class', [])
        if isinstance(classes, str):
            classes = classes.split()

        brush = _BRUSH_PATTERN.search(' '.join(classes))
        if brush:
            return brush.group(1)

        for cls in classes:
            match = _LANGUAGE_CLASS_PATTERN.match(str(cls))
            if match:
                return match.group(1)

        params = element.get('data-syntaxhighlighter-params', '')
        brush = _BRUSH_PATTERN.search(params)
        if brush:
            return brush.group(1)

        return None

    def _canonicalize_pre(self, soup: BeautifulSoup, pre: Tag) -> None:
        language = self.language_of(pre)

        for br in pre.find_all('br'):
            br.replace_with('\n')

        code_text = pre.get_text()

        pre.attrs = {}
        pre.clear()
        code = soup.new_tag('code')
        if language:
            code['class'] = [f'language-{language}']
        code.string = code_text
        pre.append(code)

    def _normalize_shortcodes(self, soup: BeautifulSoup) -> int:
        count = 0
        for text_node in list(soup.find_all(string=CODE_SHORTCODE_PATTERN)):
            if text_node.find_parent(['pre', 'code']) is not None:
                continue

            text = str(text_node)
            nodes = []
            position = 0
            for match in CODE_SHORTCODE_PATTERN.finditer(text):
                nodes.append(NavigableString(text[position:match.start()]))
                nodes.append(self._build_pre(
                    soup,
                    match.group(3).strip('\n'),
                    code_shortcode_language(match.group(1), match.group(2))
                ))
                position = match.end()
                count += 1
            nodes.append(NavigableString(text[position:]))

            text_node.replace_with(*[node for node in nodes if not isinstance(node, str) or str(node)])
            self._hoist_out_of_paragraphs(nodes)

        return count

    def _normalize_multiline_code(self, soup: BeautifulSoup) -> int:
        count = 0
        for code in list(soup.find_all('code')):
            if code.find_parent('pre') is not None:
                continue
            if '\n' not in code.get_text().strip() and not code.find('br'):
                continue

            for br in code.find_all('br'):
                br.replace_with('\n')

            pre = self._build_pre(soup, code.get_text().strip('\n'), self.language_of(code))
            parent = code.parent
            if parent is not None and parent.name == 'p' and self._only_child(parent, code):
                parent.replace_with(pre)
            else:
                code.replace_with(pre)
            count += 1

        return count

    @staticmethod
    def _build_pre(soup: BeautifulSoup, text: str, language: str) -> Tag:
        pre = soup.new_tag('pre')
        code = soup.new_tag('code')
        language = normalize_language(language)
        if language:
            code['class'] = [f'language-{language}']
        code.string = text
        pre.append(code)
        return pre

    @staticmethod
    def _only_child(parent: Tag, child: Tag) -> bool:
        for node in parent.contents:
            if node is child:
                continue
            if isinstance(node, NavigableString) and not node.strip():
                continue
            return False
        return True

    @staticmethod
    def _hoist_out_of_paragraphs(nodes) -> None:
        """A code block alone in a paragraph replaces the paragraph."""
        for node in nodes:
            if not isinstance(node, Tag) or node.name != 'pre':
                continue
            parent = node.parent
            if parent is None or parent.name != 'p':
                continue
            if CodeBlockNormalizer._only_child(parent, node):
                parent.replace_with(node.extract())
