"""
The REST service layer:  actions that carry out CRUD operations on tables, the errors they raise, 
the hooks that customize them, and the renderers that serialize their results.
"""
from .result import Result
from .errors import (ApiError, RecordNotFound, ValidationFailed, RouteResolutionError,
                     Unauthorized, http_status)
from .hooks import HookRegistry, BEFORE_QUERY, AFTER_FIND, BEFORE_FIND_ONE, BEFORE_PATCH
from .routing import Router, ReverseRouter, LinkDescriptor
from .describe import describe_table, make_label, humanize
from .renderer import (Response, Renderer, XmlRenderer, JsonRenderer, RawRenderer,
                       create_renderer, register_renderer)
from .base import CrudService
from .action import (Action, CrudAction, IndexAction, ViewAction, AddAction, EditAction,
                     DeleteAction, DescribeAction)
