"""
The service:  the coordinator that selects an action for each request on a resource and the 
renderer for its result.
"""
import logging
from collections.abc import Mapping

from .. import system
from ..table import TableRegistry
from .result import Result
from .errors import ApiError
from .hooks import HookRegistry
from .routing import Router, ReverseRouter
from .renderer import Response, Renderer, create_renderer
from .action import (CrudAction, IndexAction, ViewAction, AddAction, EditAction, DeleteAction,
                     DescribeAction)

DESCRIBE_PATH = "describe"
DEF_RENDERER = "json"

class CrudService(object):
    """
    a REST service for one resource.  A resource may be nested under a parent resource, in which
    case its path includes the parent's identifier (e.g. ``authors/{parent_id}/books``) and its 
    records are restricted to those whose ``parent_id_name`` field matches that identifier.

    This class recognizes the following configuration parameters:

    ``renderer``
       the name of the renderer to use by default (default: ``json``)
    ``debug``
       if True, include exception class names in error output
    """

    def __init__(self, name: str, tables, router: Router=None, table: str=None, parent: str=None,
                 parent_id_name: str=None, hooks: HookRegistry=None, config: Mapping=None,
                 log: logging.Logger=None):
        """
        :param str         name:  the name of the service (and, by default, its table)
        :param           tables:  the TableRegistry (or a list of Tables) to draw tables from
        :param Router    router:  the router for building links; if the service has no route yet,
                                  one is registered for it
        :param str        table:  the name of the default table; default: ``name``
        :param str       parent:  the name of the parent service for a nested resource
        :param str parent_id_name:  the field of this resource's table that holds the parent id
        :param HookRegistry hooks:  the hooks to apply to this service's actions
        :param dict      config:  the service configuration
        :param Logger       log:  the logger to use; default: a child of the package logger
        """
        self.name = name
        if not isinstance(tables, TableRegistry):
            tables = TableRegistry(tables)
        self.tables = tables
        self._table = table or name
        self.parent = parent
        self.parent_id_name = parent_id_name
        if parent and not parent_id_name:
            self.parent_id_name = (parent[:-1] if parent.endswith('s') else parent) + "_id"
        self.hooks = hooks if hooks is not None else HookRegistry()
        self.cfg = config if config is not None else {}
        if not log:
            log = logging.getLogger(system.system_abbrev).getChild(name)
        self.log = log

        self.router = router
        if router is not None and not router.route(name):
            path = name
            if parent:
                path = "%s/{parent_id}/%s" % (router.path_for(parent), name)
            router.connect(name, path)

    def table(self) -> str:
        """
        the name of the default table for this service's actions
        """
        return self._table

    def reverse_router(self) -> ReverseRouter:
        return ReverseRouter(self.router, self.name)

    def build_action(self, method: str, path: str="", data=None, parent_id=None) -> CrudAction:
        """
        create the action that handles a request
        :param str method:  the HTTP method
        :param str   path:  the path relative to the service's route; either empty, ``describe``,
                            or a record identifier (with components of a composite key separated
                            by commas)
        :param       data:  the parsed request body, if any
        :param  parent_id:  the identifier of the parent record, for a nested resource
        :raises ApiError:   if the path is not recognized (404) or the method is not allowed (405)
        """
        method = method.upper()
        parts = [p for p in (path or "").strip('/').split('/') if p]
        kw = {"data": data}
        if self.parent:
            kw.update({"parent_id": parent_id, "parent_id_name": self.parent_id_name})

        if not parts:
            if method in ("GET", "HEAD"):
                return IndexAction(self, **kw)
            if method == "POST":
                return AddAction(self, **kw)
            raise ApiError("Method Not Allowed", 405)

        if len(parts) > 1:
            raise ApiError("Not Found", 404)

        if parts[0] == DESCRIBE_PATH:
            if method in ("GET", "HEAD"):
                return DescribeAction(self, **kw)
            raise ApiError("Method Not Allowed", 405)

        id = parts[0].split(',')
        if len(id) == 1:
            id = id[0]
        actcls = {
            "GET": ViewAction,
            "HEAD": ViewAction,
            "PUT": EditAction,
            "PATCH": EditAction,
            "DELETE": DeleteAction
        }.get(method)
        if not actcls:
            raise ApiError("Method Not Allowed", 405)
        return actcls(self, id=id, **kw)

    def dispatch(self, method: str, path: str="", data=None, parent_id=None) -> Result:
        """
        execute the action that handles a request and return its result
        :raises ApiError:  if the action fails
        """
        action = self.build_action(method, path, data, parent_id)
        self.log.debug("%s %s/%s -> %s", method, self.name, path or "", type(action).__name__)
        return action.process()

    def renderer(self, response: Response, name=None) -> Renderer:
        """
        create a renderer that writes to the given response
        :param name:  the renderer to use; default: the one configured for the service
        """
        return create_renderer(name or self.cfg.get('renderer', DEF_RENDERER), response, self.cfg)
