"""Whitespace formatter for generated MDX markdown."""

import logging
import re
from typing import List

_FENCE_OPEN = re.compile(r'^(\s*)(`{3,}|~{3,})')
_HEADING = re.compile(r'^#{1,6}(\s|$)')
_BULLET = re.compile(r'^(\s*)[*+](\s+)(?=\S)')
_THEMATIC_BREAK = re.compile(r'^\s*([*_-])(\s*\1){2,}\s*$')


class MarkdownFormatter:
    """
    Canonical whitespace for MDX output.

    - trailing whitespace removed
    - blank line before and after headings and fenced code
    - at most one blank line in a row
    - ``*`` and ``+`` bullets become ``-``
    - exactly one trailing newline

    Fenced code is copied byte for byte. Formatting formatted text is a
    no-op.
    """

    def __init__(self, logger: logging.Logger = None):
        """Initialize formatter with optional logger."""
        self.logger = logger or logging.getLogger('wordpress_mdx_migrator.converters.markdown_formatter')

    def format(self, markdown: str) -> str:
        if not markdown or not markdown.strip():
            return ''

        blocks = self._split_fences(markdown.replace('\r\n', '\n').split('\n'))

        lines: List[str] = []
        for is_fence, block in blocks:
            if is_fence:
                self._ensure_blank_line(lines)
                lines.extend(block)
                lines.append('')
                continue

            for line in block:
                line = line.rstrip()
                if not _THEMATIC_BREAK.match(line):
                    line = _BULLET.sub(r'\1-\2', line)

                if _HEADING.match(line):
                    self._ensure_blank_line(lines)
                    lines.append(line)
                    lines.append('')
                    continue

                if not line and lines and not lines[-1]:
                    continue
                lines.append(line)

        while lines and not lines[0]:
            lines.pop(0)
        while lines and not lines[-1]:
            lines.pop()

        return '\n'.join(lines) + '\n' if lines else ''

    @staticmethod
    def _ensure_blank_line(lines: List[str]) -> None:
        if lines and lines[-1]:
            lines.append('')

    @staticmethod
    def _split_fences(lines: List[str]):
        """Split lines into alternating (is_fence, lines) blocks."""
        blocks = []
        current: List[str] = []
        fence = None

        for line in lines:
            if fence is None:
                match = _FENCE_OPEN.match(line)
                if match:
                    if current:
                        blocks.append((False, current))
                    current = [line]
                    fence = match.group(2)
                    continue
                current.append(line)
            else:
                current.append(line)
                stripped = line.strip()
                if stripped.startswith(fence[0] * len(fence)) and not stripped.strip(fence[0]):
                    blocks.append((True, current))
                    current = []
                    fence = None

        if current:
            # An unterminated fence runs to the end of the document
            blocks.append((fence is not None, current))
        return blocks
