"""Tests for code block normalization."""

import pytest
from bs4 import BeautifulSoup

from converters.code_block_normalizer import CodeBlockNormalizer, normalize_language


def normalize(markup):
    soup = BeautifulSoup(markup, 'html.parser')
    CodeBlockNormalizer().normalize(soup)
    return str(soup)


class TestNormalizeLanguage:
    @pytest.mark.parametrize('hint, expected', [
        ('js', 'javascript'),
        ('JS', 'javascript'),
        ('sh', 'bash'),
        ('py', 'python'),
        ('yml', 'yaml'),
        ('c++', 'cpp'),
        ('text', ''),
        ('plain', ''),
        ('"jsx"', 'jsx'),
        ('Haskell', 'haskell'),
        (None, ''),
    ])
    def test_aliases(self, hint, expected):
        assert normalize_language(hint) == expected


class TestCodeBlockNormalizer:
    """Test the code plugin formats found in WordPress posts."""

    def test_syntaxhighlighter_brush_class(self):
        result = normalize('<pre class="brush: python; gutter: false">print(1)</pre>')
        assert result == '<pre><code class="language-python">print(1)</code></pre>'

    def test_wp_syntax_lang_attribute(self):
        result = normalize('<pre lang="js" line="1">var a = 1;</pre>')
        assert result == '<pre><code class="language-javascript">var a = 1;</code></pre>'

    def test_gutenberg_code_block(self):
        result = normalize('<pre class="wp-block-code"><code lang="sh">echo hi</code></pre>')
        assert result == '<pre><code class="language-bash">echo hi</code></pre>'

    def test_existing_language_class(self):
        result = normalize('<pre><code class="language-ruby">puts 1</code></pre>')
        assert result == '<pre><code class="language-ruby">puts 1</code></pre>'

    def test_syntaxhighlighter_block_wrapper(self):
        result = normalize(
            '<div class="wp-block-syntaxhighlighter-code" data-lang="yml">'
            '<pre>key: value</pre></div>'
        )
        assert '<pre><code class="language-yaml">key: value</code></pre>' in result

    def test_breaks_become_newlines(self):
        result = normalize('<pre>a<br/>b<br>c</pre>')
        assert result == '<pre><code>a\nb\nc</code></pre>'

    def test_pre_without_language(self):
        assert normalize('<pre>plain</pre>') == '<pre><code>plain</code></pre>'

    def test_multiline_inline_code_becomes_block(self):
        result = normalize('<p><code>line1\nline2</code></p>')
        assert result == '<pre><code>line1\nline2</code></pre>'

    def test_single_line_inline_code_untouched(self):
        markup = '<p>Use <code>npm install</code> first</p>'
        assert normalize(markup) == markup

    def test_code_shortcode_alone_in_paragraph(self):
        result = normalize('<p>[sourcecode language="python"]print(1)[/sourcecode]</p>')
        assert result == '<pre><code class="language-python">print(1)</code></pre>'

    def test_language_named_shortcode(self):
        result = normalize('<p>Before [javascript]let x = 1;[/javascript] after</p>')
        assert '<pre><code class="language-javascript">let x = 1;</code></pre>' in result
        assert result.startswith('<p>Before ')
        assert 'after</p>' in result

    def test_shortcodes_inside_code_untouched(self):
        markup = '<pre><code>[code]x[/code]</code></pre>'
        assert normalize(markup) == markup

    def test_returns_block_count(self):
        soup = BeautifulSoup('<pre>a</pre><p>[code]b[/code]</p>', 'html.parser')
        assert CodeBlockNormalizer().normalize(soup) == 2
