import pdb
import unittest as test

from crudrest.web import formats as fmts

class TestAcceptUtils(test.TestCase):

    def test_order_accepts(self):
        self.assertEqual(fmts.order_accepts("application/json"), ["application/json"])
        self.assertEqual(fmts.order_accepts("text/plain;q=0.5, application/xml, */*;q=0.1"),
                         ["application/xml", "text/plain", "*/*"])
        self.assertEqual(fmts.order_accepts(["text/html;q=0", "text/plain"]), ["text/plain"])
        self.assertEqual(fmts.order_accepts(""), [])

    def test_match_accept(self):
        self.assertEqual(fmts.match_accept("text/plain", "text/plain"), "text/plain")
        self.assertEqual(fmts.match_accept("text/plain", "text/*"), "text/plain")
        self.assertEqual(fmts.match_accept("text/*", "text/csv"), "text/csv")
        self.assertIsNone(fmts.match_accept("text/plain", "application/json"))

class TestFormatSupport(test.TestCase):

    def setUp(self):
        self.sup = fmts.FormatSupport()
        self.json = fmts.Format("json", "application/json")
        self.xml = fmts.Format("xml", "application/xml")
        self.raw = fmts.Format("raw", "text/plain")
        self.sup.support(self.xml, ["text/xml"])
        self.sup.support(self.json, ["text/json"], True)
        self.sup.support(self.raw)

    def test_match(self):
        self.assertEqual(self.sup.default_format(), self.json)
        self.assertEqual(self.sup.match("xml"), self.xml)
        self.assertEqual(self.sup.match("text/xml"), self.xml)
        self.assertEqual(self.sup.match("*/*"), self.json)
        self.assertEqual(self.sup.match("application/*"), self.json)
        self.assertEqual(self.sup.match("text/*"), self.xml)
        self.assertIsNone(self.sup.match("yaml"))
        self.assertIsNone(self.sup.match("image/*"))

    def test_select_format(self):
        self.assertIsNone(self.sup.select_format([], []))
        self.assertEqual(self.sup.select_format(["xml"], []), self.xml)
        self.assertEqual(self.sup.select_format(["yaml", "raw"], []), self.raw)
        self.assertEqual(self.sup.select_format([], ["image/png", "text/plain"]), self.raw)
        self.assertEqual(self.sup.select_format(["xml"], ["text/*"]), self.xml)
        self.assertEqual(self.sup.select_format(["xml"], ["*/*"]), self.xml)

        with self.assertRaises(fmts.UnsupportedFormat):
            self.sup.select_format(["yaml"], [])
        with self.assertRaises(fmts.Unacceptable):
            self.sup.select_format(["xml"], ["application/json"])
        with self.assertRaises(fmts.Unacceptable):
            self.sup.select_format([], ["image/png"])

if __name__ == '__main__':
    test.main()
