"""
The base classes for rendering results and errors into a wire format.

A :py:class:`Renderer` writes to a :py:class:`Response`, an abstraction of the transport's 
response that accepts a status code, a content type, and a body.  Each render call sets each of
these exactly once.
"""
import datetime
from abc import ABC, abstractmethod
from collections import OrderedDict
from collections.abc import Mapping
from enum import Enum

from ..result import Result
from ..errors import ApiError, http_status

class Response(ABC):
    """
    the interface to the transport response that a renderer writes to
    """

    @abstractmethod
    def status_code(self, code: int):
        raise NotImplementedError()

    @abstractmethod
    def type(self, mimetype: str):
        raise NotImplementedError()

    @abstractmethod
    def body(self, text: str):
        raise NotImplementedError()

    def header(self, name: str, value: str):
        """
        add an extra header to the response.  Transports that do not support extra headers 
        can ignore this.
        """
        pass

def to_data(value):
    """
    convert a payload to plain data (mappings, lists, and scalars).  Objects providing a 
    ``to_dict()`` method (e.g. entities) are replaced by its output.
    """
    if hasattr(value, 'to_dict'):
        value = value.to_dict()
    if isinstance(value, Mapping):
        return OrderedDict((k, to_data(v)) for k, v in value.items())
    if isinstance(value, (list, tuple, set)):
        return [to_data(v) for v in value]
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime.datetime, datetime.date)):
        return value.isoformat()
    return value

class Renderer(ABC):
    """
    a serializer of results and errors to a single wire format
    """
    #: the name that the renderer is registered under
    name = None
    #: the content type of the output
    mimetype = None
    #: other content types a client can request to get this renderer's output
    content_types = []

    def __init__(self, response: Response, config: Mapping=None):
        """
        :param Response response:  the transport response to write to
        :param dict       config:  the renderer's configuration; the ``debug`` parameter, when 
                                   True, causes the exception class to be included in error output
        """
        self.response = response
        self.cfg = config or {}

    def respond(self, result: Result):
        """
        write a successful result to the response
        """
        body = self.format(result.payload)
        self.response.status_code(result.status)
        self.response.type(self.mimetype)
        for name, value in result.headers.items():
            self.response.header(name, value)
        self.response.body(body)

    def respond_error(self, error: ApiError):
        """
        write an error to the response
        """
        body = self.format_error(self.error_data(error))
        self.response.status_code(http_status(error))
        self.response.type(self.mimetype)
        self.response.body(body)

    def error_data(self, error: ApiError) -> Mapping:
        out = error.to_dict()
        if self.cfg.get('debug'):
            cause = error.cause if error.cause else error
            out['exception'] = type(cause).__name__
        return out

    @abstractmethod
    def format(self, payload) -> str:
        """
        serialize a result payload
        """
        raise NotImplementedError()

    @abstractmethod
    def format_error(self, data: Mapping) -> str:
        """
        serialize the error data returned by :py:meth:`error_data`
        """
        raise NotImplementedError()
