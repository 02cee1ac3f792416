"""
The uniform value object that actions produce and renderers consume.
"""
from collections import OrderedDict
from collections.abc import Mapping

class Result(object):
    """
    the outcome of a successful action:  an HTTP status code, a payload of arbitrary structured
    data, and any extra response headers.  A Result may be updated freely by the action that
    builds it; once it is handed to a renderer, it should be treated as read-only.
    """

    def __init__(self, payload=None, status: int=200, headers: Mapping=None):
        self.payload = payload
        self.status = status
        self.headers = OrderedDict(headers or {})

    def add_header(self, name: str, value: str):
        self.headers[name] = value
        return self

    def to_dict(self) -> Mapping:
        return OrderedDict([("status", self.status), ("payload", self.payload)])

    def __repr__(self):
        return "Result(%s: %r)" % (self.status, self.payload)
