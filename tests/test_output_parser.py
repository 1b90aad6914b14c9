import unittest

from site_editor.output_parser import (
    CSS_BLOCK,
    DIFF,
    FULL_DOCUMENT,
    extract_css_block,
    extract_full_document,
    is_plausible_full_document,
    iter_patch_candidates,
    parse_diff,
    parse_patch,
)

HERO_REPLY = 'BEFORE:\n```\n<div id="hero">OLD</div>\n```\nAFTER:\n```\n<div id="hero">NEW</div>\n```\n'


class TestParseDiff(unittest.TestCase):
    def test_before_after(self):
        patch = parse_diff(HERO_REPLY)
        self.assertEqual(patch.kind, DIFF)
        self.assertEqual(patch.before, '<div id="hero">OLD</div>')
        self.assertEqual(patch.after, '<div id="hero">NEW</div>')

    def test_labels_case_insensitive_with_bold_and_language(self):
        reply = "Here:\n**before:**\n```html\n<p>a</p>\n```\n**After:**\n```html\n<p>b</p>\n```"
        patch = parse_diff(reply)
        self.assertEqual((patch.before, patch.after), ("<p>a</p>", "<p>b</p>"))

    def test_old_new_synonyms(self):
        reply = "REPLACE:\n```css\n.a{color:red}\n```\nWITH:\n```css\n.a{color:blue}\n```"
        patch = parse_diff(reply)
        self.assertEqual((patch.before, patch.after), (".a{color:red}", ".a{color:blue}"))

    def test_unlabeled_root_pair(self):
        reply = "```css\n:root { --primary: #111111; }\n```\nbecomes\n```css\n:root { --primary: #222222; }\n```"
        patch = parse_diff(reply)
        self.assertEqual(patch.before, ":root { --primary: #111111; }")
        self.assertEqual(patch.after, ":root { --primary: #222222; }")

    def test_short_root_blocks_are_ignored(self):
        self.assertIsNone(parse_diff("```\n:root{}\n```\n```\n:root{}\n```"))

    def test_empty_before_is_not_a_diff(self):
        self.assertIsNone(parse_diff("BEFORE:\n```\n```\nAFTER:\n```\n<p>x</p>\n```"))


class TestFullDocument(unittest.TestCase):
    def test_html_fence(self):
        page = "<!DOCTYPE html><html><body>x</body></html>"
        self.assertEqual(extract_full_document(f"Sure:\n```html\n{page}\n```"), page)

    def test_generic_fence_with_doctype(self):
        page = "<!doctype html>\n<html><body>x</body></html>"
        self.assertEqual(extract_full_document(f"```\n{page}\n```"), page)

    def test_bare_document_cut_at_closing_tag(self):
        reply = "Sure! <!DOCTYPE html>\n<html><body>x</body></html>\nHope this helps"
        self.assertEqual(extract_full_document(reply), "<!DOCTYPE html>\n<html><body>x</body></html>")

    def test_no_document(self):
        self.assertIsNone(extract_full_document("Just change the color."))

    def test_html_fence_fragment_is_not_a_document(self):
        reply = 'BEFORE:\n```html\n<section id="about"><p>a</p></section>\n```\nAFTER:\n```html\n<p>b</p>\n```'
        self.assertIsNone(extract_full_document(reply))

    def test_later_html_fence_with_document(self):
        page = "<!DOCTYPE html><html><body>x</body></html>"
        reply = f"```html\n<p>fragment</p>\n```\nFull page:\n```html\n{page}\n```"
        self.assertEqual(extract_full_document(reply), page)

    def test_size_guard(self):
        current = "<!DOCTYPE html>" + "x" * 100
        self.assertFalse(is_plausible_full_document("<html>" + "y" * 10, current))
        self.assertTrue(is_plausible_full_document("<html>" + "y" * 60, current))
        self.assertFalse(is_plausible_full_document("   ", current))

    def test_fragment_is_never_plausible(self):
        self.assertFalse(is_plausible_full_document("<section>" + "y" * 200 + "</section>", "<!DOCTYPE html>x"))
        self.assertFalse(is_plausible_full_document("<section>y</section>", ""))


class TestCssBlock(unittest.TestCase):
    def test_selector_rules(self):
        reply = "```css\n.btn-primary { background: #001B2E; }\n```"
        self.assertEqual(extract_css_block(reply), ".btn-primary { background: #001B2E; }")

    def test_html_block_is_not_css(self):
        self.assertIsNone(extract_css_block("```\n<div style=\"x\">{{ not css }}</div>\n```"))

    def test_skips_before_block_and_takes_last(self):
        reply = (
            "**BEFORE:**\n```css\n:root { --primary: #111111; }\n```\n"
            "**AFTER:**\n```css\n:root { --primary: #222222; }\n```"
        )
        self.assertEqual(extract_css_block(reply), ":root { --primary: #222222; }")

    def test_old_label_only_block_is_skipped(self):
        reply = "OLD:\n```css\n:root { --primary: #111111; }\n```\nUse :root { --primary: #333; } now"
        self.assertEqual(extract_css_block(reply), ":root { --primary: #333; }")

    def test_bare_root_block(self):
        self.assertEqual(extract_css_block("Use :root { --primary: #222; } instead"), ":root { --primary: #222; }")


class TestParsePatch(unittest.TestCase):
    def test_priority_diff_first(self):
        self.assertEqual(parse_patch(HERO_REPLY).kind, DIFF)

    def test_full_document_reply(self):
        reply = "```html\n<!DOCTYPE html><html><body>new</body></html>\n```"
        patch = parse_patch(reply)
        self.assertEqual(patch.kind, FULL_DOCUMENT)
        self.assertIn("new", patch.full_document)

    def test_css_reply(self):
        patch = parse_patch("```css\n.btn-primary { background: #001B2E; }\n```")
        self.assertEqual(patch.kind, CSS_BLOCK)

    def test_unrecognized_reply(self):
        reply = "I cannot help with that request."
        self.assertIsNone(parse_patch(reply))
        self.assertEqual(list(iter_patch_candidates(reply)), [])

    def test_candidates_in_priority_order(self):
        reply = HERO_REPLY + "\nOr the whole page:\n```html\n<!DOCTYPE html><html></html>\n```"
        kinds = [p.kind for p in iter_patch_candidates(reply)]
        self.assertEqual(kinds[:2], [DIFF, FULL_DOCUMENT])
