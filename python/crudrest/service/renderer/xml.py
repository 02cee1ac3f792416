"""
A renderer that produces XML output.

Mappings become elements named after their keys; a list stored under a key produces one element
per item, each named after that key.  For example, the payload::

   {"title": "Hello", "tags": ["a", "b"], "draft": False}

is rendered as::

   <?xml version="1.0" encoding="UTF-8"?>
   <data><title>Hello</title><tags>a</tags><tags>b</tags><draft>false</draft></data>
"""
import re
from collections.abc import Mapping

from lxml import etree

from .base import Renderer, to_data

XML_DECL = '<?xml version="1.0" encoding="UTF-8"?>'

_name_re = re.compile(r'^[A-Za-z_][\w.\-]*$')

# characters outside the XML 1.0 Char production
_illegal_re = re.compile(r'[^\t\n\r\u0020-\uD7FF\uE000-\uFFFD\U00010000-\U0010FFFF]')

def xml_text(value) -> str:
    """
    convert a value to text that can be stored in an XML document.  Characters that XML 1.0 
    does not allow are written as ``\\uXXXX`` escapes.
    """
    return _illegal_re.sub(lambda m: "\\u%04x" % ord(m.group(0)), str(value))

def is_xml_name(key) -> bool:
    return isinstance(key, str) and bool(_name_re.match(key)) and \
           not key.lower().startswith("xml")

class XmlRenderer(Renderer):
    """
    render results as XML
    """
    name = "xml"
    mimetype = "application/xml"
    content_types = ["application/xml", "text/xml"]
    root = "data"
    error_root = "error"

    def _element(self, parent, key):
        if is_xml_name(key):
            return etree.SubElement(parent, key)
        return etree.SubElement(parent, "item", key=xml_text(key))

    def _add(self, parent, key, value):
        if isinstance(value, list):
            if not value:
                self._element(parent, key)
            for item in value:
                self._fill(self._element(parent, key), item)
        else:
            self._fill(self._element(parent, key), value)

    def _fill(self, el, value):
        if isinstance(value, Mapping):
            for k, v in value.items():
                self._add(el, str(k), v)
        elif isinstance(value, list):
            for item in value:
                self._fill(etree.SubElement(el, "item"), item)
        elif isinstance(value, bool):
            el.text = "true" if value else "false"
        elif value is not None:
            el.text = xml_text(value)

    def serialize(self, rootname: str, data) -> str:
        root = etree.Element(rootname)
        self._fill(root, data)
        return XML_DECL + "\n" + etree.tostring(root, encoding="unicode") + "\n"

    def format(self, payload) -> str:
        payload = to_data(payload)
        if not isinstance(payload, Mapping):
            payload = {"value": payload}
        return self.serialize(self.root, payload)

    def format_error(self, data: Mapping) -> str:
        return self.serialize(self.error_root, to_data(data))
