import unittest

from site_editor.validation import validate_document, validate_html, validate_js

TAILWIND = '<script src="https://cdn.tailwindcss.com"></script>'


class TestValidateJs(unittest.TestCase):
    def test_plain_js_ok(self):
        js = "document.querySelector('.menu').classList.toggle('open');"
        self.assertTrue(validate_js(js).valid)

    def test_forbidden_calls(self):
        for js in ("eval('1')", "new Function('a', 'return a')", "fetch('/x')", "import('./m.js')", "new XMLHttpRequest()"):
            self.assertFalse(validate_js(js).valid, js)

    def test_word_containing_eval_is_ok(self):
        self.assertTrue(validate_js("retrieval(1);").valid)

    def test_jsx_rejected_but_strings_allowed(self):
        self.assertFalse(validate_js("function A() { return <div className='x'>hi</div>; }").valid)
        self.assertTrue(validate_js("el.innerHTML = '<div>hi</div>';").valid)


class TestValidateHtml(unittest.TestCase):
    def test_tailwind_cdn_allowed(self):
        self.assertTrue(validate_html(TAILWIND).valid)

    def test_external_script_and_iframe_rejected(self):
        self.assertFalse(validate_html('<script src="https://evil.example/x.js"></script>').valid)
        self.assertFalse(validate_html('<iframe src="http://example.com"></iframe>').valid)


class TestValidateDocument(unittest.TestCase):
    def test_inline_script_checked(self):
        doc = f"<html><head>{TAILWIND}</head><body><script>eval('x')</script></body></html>"
        result = validate_document(doc)
        self.assertFalse(result.valid)
        self.assertIn("forbidden", result.reason)

    def test_only_new_violations_count(self):
        original = "<body><script>fetch('/a')</script><p>old</p></body>"
        edited = "<body><script>fetch('/a')</script><p>new</p></body>"
        self.assertTrue(validate_document(edited, original=original).valid)
        worse = "<body><script>fetch('/a'); fetch('/b')</script><p>new</p></body>"
        self.assertFalse(validate_document(worse, original=original).valid)
