"""
A renderer that produces JSON output
"""
import json, datetime
from collections.abc import Mapping
from enum import Enum

from .base import Renderer

def _default(obj):
    if hasattr(obj, 'to_dict'):
        return obj.to_dict()
    if isinstance(obj, (datetime.datetime, datetime.date)):
        return obj.isoformat()
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, set):
        return list(obj)
    raise TypeError("Object of type %s is not JSON serializable" % type(obj).__name__)

class JsonRenderer(Renderer):
    """
    render results as JSON
    """
    name = "json"
    mimetype = "application/json"
    content_types = ["application/json", "text/json"]

    def _dumps(self, data) -> str:
        return json.dumps(data, indent=self.cfg.get('indent', 2), default=_default)

    def format(self, payload) -> str:
        return self._dumps(payload)

    def format_error(self, data: Mapping) -> str:
        return self._dumps(data)
