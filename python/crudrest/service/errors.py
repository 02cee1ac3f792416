"""
The errors that actions raise and renderers report to clients.

Every failure of an operation is raised as an :py:class:`ApiError`; callers are expected to catch
it and hand it to a renderer rather than inspect return values.  The set of kinds is closed:

========================  ======  ==========================================================
kind                      status  raised when
========================  ======  ==========================================================
RecordNotFound            404     a primary key has the wrong arity or matches no record
ValidationFailed          422     the table refuses to save an entity with invalid fields
RouteResolutionError      500     a link to an action cannot be resolved to a route
Unauthorized              401     the client failed authentication (rendered, not enforced)
ApiError                  (any)   other failures; the carried code is used as the status
========================  ======  ==========================================================
"""
from collections import OrderedDict
from collections.abc import Mapping

from .. import CrudRestException

class ApiError(CrudRestException):
    """
    a failure to be reported to the web client.
    """
    default_code = 500
    default_message = "Internal Server Error"

    def __init__(self, message: str=None, code: int=None, errors: Mapping=None, cause=None):
        """
        :param str message:  the message describing the failure
        :param int    code:  the numeric code for the error; by default the kind's HTTP status
        :param dict errors:  a validation error bag mapping field names to lists of messages
        :param Exception cause:  the exception that triggered this error, if any
        """
        if not message:
            message = self.default_message
        super(ApiError, self).__init__(message, cause)
        self.message = message
        self.code = code if code is not None else self.default_code
        self.errors = OrderedDict(errors or {})

    def to_dict(self) -> Mapping:
        out = OrderedDict([("code", self.code), ("message", self.message)])
        if self.errors:
            out['errors'] = OrderedDict(self.errors)
        return out

class RecordNotFound(ApiError):
    """
    no record exists for the requested primary key (or the key has the wrong number of values)
    """
    default_code = 404
    default_message = "Record not found"

class ValidationFailed(ApiError):
    """
    the table refused to save an entity because it has invalid fields; ``errors`` carries the
    entity's error bag (which may be empty)
    """
    default_code = 422
    default_message = "Validation failed"

class RouteResolutionError(ApiError):
    """
    an action could not be resolved to a registered route
    """
    default_code = 500
    default_message = "Route could not be resolved"

class Unauthorized(ApiError):
    """
    the client is not authenticated or not authorized to make the request
    """
    default_code = 401
    default_message = "Unauthorized"

_status_map = OrderedDict([
    (RecordNotFound, 404),
    (ValidationFailed, 422),
    (RouteResolutionError, 500)
])

def http_status(error: ApiError) -> int:
    """
    return the HTTP status that should be sent in response to the given error
    """
    for kind, status in _status_map.items():
        if isinstance(error, kind):
            return status
    return error.code
