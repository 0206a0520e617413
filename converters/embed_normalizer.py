"""Embed normalizer: rewrites players, tweets and embed blocks as links."""

import logging
import re
from typing import Optional

from bs4 import BeautifulSoup, Tag

from .shortcodes import EmbedShortcode, SHORTCODE_TOKEN_PATTERN, build_link, canonical_media_url, lookup_shortcode

_STATUS_LINK = re.compile(r'https?://(?:www\.|mobile\.)?(?:twitter|x)\.com/[^/\s]+/status(?:es)?/\d+')


class EmbedNormalizer:
    """
    Rewrites embedded content into paragraph links.

    Handles iframe players (YouTube, Vimeo and anything else with a src),
    Twitter blockquotes, Gutenberg ``figure.wp-block-embed`` blocks and embed
    shortcodes that stand alone in a paragraph. Tweets keep their quoted text.
    """

    STRIP_TAGS = ['script', 'noscript', 'style']

    def __init__(self, logger: logging.Logger = None):
        """Initialize embed normalizer with optional logger."""
        self.logger = logger or logging.getLogger('wordpress_mdx_migrator.converters.embeds')

    def normalize(self, soup: BeautifulSoup) -> int:
        """
        Normalize all embeds in the tree.

        Args:
            soup: Parsed record body

        Returns:
            Number of embeds rewritten
        """
        for tag in soup.find_all(self.STRIP_TAGS):
            tag.decompose()

        count = 0
        count += self._normalize_embed_blocks(soup)
        count += self._normalize_tweets(soup)
        count += self._normalize_iframes(soup)
        count += self._normalize_block_shortcodes(soup)

        if count:
            self.logger.debug(f"Normalized {count} embed(s)")
        return count

    def _normalize_embed_blocks(self, soup: BeautifulSoup) -> int:
        count = 0
        for figure in list(soup.find_all('figure', class_='wp-block-embed')):
            if figure.parent is None:
                continue

            url = self._embed_block_url(figure)
            if not url:
                continue

            replacement = [self._link_paragraph(soup, canonical_media_url(url))]
            caption = figure.find('figcaption')
            if caption is not None and caption.get_text(strip=True):
                paragraph = soup.new_tag('p')
                for child in list(caption.contents):
                    paragraph.append(child.extract())
                replacement.append(paragraph)

            figure.replace_with(*replacement)
            count += 1
        return count

    @staticmethod
    def _embed_block_url(figure: Tag) -> Optional[str]:
        wrapper = figure.find(class_='wp-block-embed__wrapper')
        if wrapper is not None:
            text = wrapper.get_text(strip=True)
            if text.startswith(('http://', 'https://')):
                return text

        iframe = figure.find('iframe', src=True)
        if iframe is not None:
            return iframe['src']

        status = figure.find('a', href=_STATUS_LINK)
        if status is not None:
            return status['href']

        link = figure.find('a', href=True)
        return link['href'] if link is not None else None

    def _normalize_tweets(self, soup: BeautifulSoup) -> int:
        count = 0
        for quote in list(soup.find_all('blockquote', class_=['twitter-tweet', 'twitter-video'])):
            links = quote.find_all('a', href=_STATUS_LINK)
            if not links:
                continue
            url = links[-1]['href'].split('?')[0]

            text = quote.find('p')
            blockquote = soup.new_tag('blockquote')
            if text is not None and text.get_text(strip=True):
                blockquote.append(text.extract())

            replacement = [self._link_paragraph(soup, url)]
            if blockquote.contents:
                replacement.insert(0, blockquote)

            quote.replace_with(*replacement)
            count += 1
        return count

    def _normalize_iframes(self, soup: BeautifulSoup) -> int:
        count = 0
        for iframe in list(soup.find_all('iframe')):
            src = (iframe.get('src') or iframe.get('data-src') or '').strip()
            if not src:
                iframe.decompose()
                continue

            url = canonical_media_url(src)
            parent = iframe.parent
            if parent is not None and parent.name in ('p', 'li', 'td', 'th', 'a', 'span', 'em', 'strong'):
                iframe.replace_with(build_link(soup, url))
            else:
                iframe.replace_with(self._link_paragraph(soup, url))
            count += 1
        return count

    def _normalize_block_shortcodes(self, soup: BeautifulSoup) -> int:
        """Embed shortcodes that are a paragraph of their own."""
        count = 0
        for paragraph in list(soup.find_all('p')):
            text = paragraph.get_text().strip()
            match = SHORTCODE_TOKEN_PATTERN.match(text)
            if match is None or match.group(1):
                continue

            shortcode = lookup_shortcode(match.group(2))
            if not isinstance(shortcode, EmbedShortcode):
                continue

            end, nodes = shortcode.apply(match, text, soup)
            if text[end:].strip() or not nodes:
                continue

            paragraph.replace_with(self._link_paragraph(soup, nodes[0]['href']))
            count += 1
        return count

    @staticmethod
    def _link_paragraph(soup: BeautifulSoup, url: str) -> Tag:
        paragraph = soup.new_tag('p')
        paragraph.append(build_link(soup, url))
        return paragraph
