import json, datetime, pdb
import unittest as test
from collections import OrderedDict

from crudrest.service import renderer as rmod
from crudrest.service.renderer.base import Response, to_data
from crudrest.service.renderer.json import JsonRenderer
from crudrest.service.renderer.raw import RawRenderer
from crudrest.service import Result, ApiError, RecordNotFound, ValidationFailed, LinkDescriptor
from crudrest.table import Entity, AssociationType
from crudrest.config import ConfigurationException

class SimpleResponse(Response):
    def __init__(self):
        self.code = None
        self.ctype = None
        self.text = None
        self.headers = []

    def status_code(self, code):
        self.code = code

    def type(self, mimetype):
        self.ctype = mimetype

    def body(self, text):
        self.text = text

    def header(self, name, value):
        self.headers.append((name, value))

class TestToData(test.TestCase):

    def test_to_data(self):
        data = to_data({"e": Entity({"a": 1}), "when": datetime.date(2024, 1, 2),
                        "kind": AssociationType.HAS_ONE, "link": LinkDescriptor("self", "GET", "/x"),
                        "list": (1, 2)})
        self.assertEqual(data, {"e": {"a": 1}, "when": "2024-01-02", "kind": "HasOne",
                                "link": {"name": "self", "href": "/x", "method": "GET"},
                                "list": [1, 2]})

class TestJsonRenderer(test.TestCase):

    def setUp(self):
        self.resp = SimpleResponse()
        self.rend = JsonRenderer(self.resp)

    def test_respond(self):
        self.rend.respond(Result({"value": "Updated!"}, 201, {"Location": "/articles/1"}))
        self.assertEqual(self.resp.code, 201)
        self.assertEqual(self.resp.ctype, "application/json")
        self.assertEqual(json.loads(self.resp.text), {"value": "Updated!"})
        self.assertEqual(self.resp.headers, [("Location", "/articles/1")])

    def test_entities(self):
        ents = [Entity({"id": 1, "secret": "x"}, hidden=["secret"]),
                Entity({"id": 2, "at": datetime.datetime(2024, 1, 2, 3, 4, 5)})]
        self.assertEqual(json.loads(self.rend.format(ents)),
                         [{"id": 1}, {"id": 2, "at": "2024-01-02T03:04:05"}])
        self.assertEqual(json.loads(self.rend.format(None)), None)

    def test_unserializable(self):
        with self.assertRaises(TypeError):
            self.rend.format({"x": object()})

    def test_respond_error(self):
        self.rend.respond_error(ValidationFailed("Validation on Articles failed",
                                                 errors={"title": ["too short"]}))
        self.assertEqual(self.resp.code, 422)
        self.assertEqual(json.loads(self.resp.text),
                         {"code": 422, "message": "Validation on Articles failed",
                          "errors": {"title": ["too short"]}})

        self.rend.respond_error(ApiError("I'm a teapot", 418))
        self.assertEqual(self.resp.code, 418)
        self.assertEqual(json.loads(self.resp.text), {"code": 418, "message": "I'm a teapot"})

class TestRawRenderer(test.TestCase):

    def test_respond(self):
        resp = SimpleResponse()
        rend = RawRenderer(resp)
        rend.respond(Result("Updated!"))
        self.assertEqual((resp.code, resp.ctype, resp.text), (200, "text/plain", "Updated!"))
        rend.respond(Result(None, 204))
        self.assertEqual((resp.code, resp.text), (204, ""))
        rend.respond_error(RecordNotFound("Record not found"))
        self.assertEqual((resp.code, resp.text), (404, "404 Record not found"))

class TestRegistry(test.TestCase):

    def test_create(self):
        resp = SimpleResponse()
        self.assertIsInstance(rmod.create_renderer("xml", resp), rmod.XmlRenderer)
        self.assertIsInstance(rmod.create_renderer("JSON", resp), JsonRenderer)
        self.assertIsInstance(rmod.create_renderer("RawRenderer", resp), RawRenderer)
        self.assertIsInstance(rmod.create_renderer(JsonRenderer, resp), JsonRenderer)
        rend = rmod.create_renderer("crudrest.service.renderer.xml.XmlRenderer", resp,
                                    {"debug": True})
        self.assertIsInstance(rend, rmod.XmlRenderer)
        self.assertTrue(rend.cfg['debug'])
        self.assertIs(rend.response, resp)

        self.assertEqual(rmod.renderer_names()[:3], ["xml", "json", "raw"])

    def test_unknown(self):
        resp = SimpleResponse()
        for spec in ["yaml", "crudrest.goober.YamlRenderer", "crudrest.config.merge_config",
                     dict, None]:
            with self.assertRaises(ConfigurationException):
                rmod.create_renderer(spec, resp)

    def test_register(self):
        class CsvRenderer(RawRenderer):
            name = "csv"
            mimetype = "text/csv"
        rmod.register_renderer(CsvRenderer)
        try:
            self.assertIs(rmod.renderer_class("csv"), CsvRenderer)
        finally:
            del rmod._renderers['csv']
        with self.assertRaises(TypeError):
            rmod.register_renderer(dict)

if __name__ == '__main__':
    test.main()
