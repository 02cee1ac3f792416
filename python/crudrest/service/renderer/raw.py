"""
A renderer that produces plain text output, suitable for simple scalar payloads
"""
from collections.abc import Mapping

from .base import Renderer, to_data

class RawRenderer(Renderer):
    """
    render results as plain text
    """
    name = "raw"
    mimetype = "text/plain"
    content_types = ["text/plain"]

    def format(self, payload) -> str:
        if payload is None:
            return ""
        return str(to_data(payload))

    def format_error(self, data: Mapping) -> str:
        return "%s %s" % (data.get('code'), data.get('message'))
