"""Tests for raw markup repair and list nesting fixes."""

import unittest

from bs4 import BeautifulSoup

from converters.html_repairer import HtmlRepairer


class TestHtmlRepairer(unittest.TestCase):
    def setUp(self):
        self.repairer = HtmlRepairer()

    def test_empty_input(self):
        self.assertEqual(self.repairer.repair(''), ('', []))

    def test_bare_paragraphs_are_wrapped(self):
        text, _ = self.repairer.repair('One\n\nTwo')
        self.assertEqual(text, '<p>One</p>\n\n<p>Two</p>')

    def test_single_newline_becomes_break(self):
        text, _ = self.repairer.repair('Line one\nLine two')
        self.assertEqual(text, '<p>Line one<br />\nLine two</p>')

    def test_existing_paragraphs_are_not_double_wrapped(self):
        text, _ = self.repairer.repair('<p>Hello</p>')
        self.assertEqual(text, '<p>Hello</p>')

    def test_block_elements_are_not_wrapped(self):
        text, _ = self.repairer.repair('<h2>Title</h2>\nText after')
        self.assertIn('<h2>Title</h2>', text)
        self.assertIn('<p>Text after</p>', text)
        self.assertNotIn('<p><h2>', text)

    def test_picture_is_not_mistaken_for_paragraph(self):
        text, _ = self.repairer.repair('<picture><img src="a.png"></picture>')
        self.assertEqual(text, '<p><picture><img src="a.png"></picture></p>')

    def test_gutenberg_comments_removed(self):
        text, _ = self.repairer.repair('<!-- wp:paragraph -->\n<p>Hi</p>\n<!-- /wp:paragraph -->')
        self.assertEqual(text, '<p>Hi</p>')

    def test_control_characters_removed_with_warning(self):
        text, warnings = self.repairer.repair('Hel\x00lo\x08')
        self.assertEqual(text, '<p>Hello</p>')
        self.assertTrue(any('control character' in warning for warning in warnings))

    def test_stray_less_than_is_escaped(self):
        text, warnings = self.repairer.repair('1 < 2 and <b>bold</b>')
        self.assertEqual(text, '<p>1 &lt; 2 and <b>bold</b></p>')
        self.assertTrue(any("stray '<'" in warning for warning in warnings))

    def test_preformatted_blocks_are_preserved(self):
        text, _ = self.repairer.repair('Intro\n\n<pre>a\n\nb < c</pre>\n\nOutro')
        self.assertIn('<pre>a\n\nb < c</pre>', text)
        self.assertIn('<p>Intro</p>', text)
        self.assertIn('<p>Outro</p>', text)
        self.assertNotIn('<p><pre>', text)

    def test_code_shortcode_contents_escaped(self):
        text, _ = self.repairer.repair('[code]<b>x</b>\n\ny[/code]')
        self.assertEqual(text, '[code]&lt;b&gt;x&lt;/b&gt;\n\ny[/code]')

    def test_unbalanced_tags_warned(self):
        _, warnings = self.repairer.repair('<div><p>open')
        self.assertTrue(any('Unbalanced <div>' in warning for warning in warnings))


class TestRepairTree(unittest.TestCase):
    def test_list_inside_list_moves_into_previous_item(self):
        soup = BeautifulSoup('<ul><li>a</li><ul><li>b</li></ul><li>c</li></ul>', 'html.parser')

        moved = HtmlRepairer().repair_tree(soup)

        self.assertEqual(moved, 1)
        self.assertEqual(str(soup), '<ul><li>a<ul><li>b</li></ul></li><li>c</li></ul>')

    def test_valid_lists_untouched(self):
        markup = '<ol><li>a<ol><li>b</li></ol></li></ol>'
        soup = BeautifulSoup(markup, 'html.parser')

        self.assertEqual(HtmlRepairer().repair_tree(soup), 0)
        self.assertEqual(str(soup), markup)


if __name__ == '__main__':
    unittest.main()
