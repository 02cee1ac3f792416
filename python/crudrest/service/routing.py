"""
Routing of request paths to services and the reverse:  building links to the operations a
service supports.

A :py:class:`Router` holds one route per service:  a path template (e.g. ``authors/{parent_id}/books``)
and the HTTP methods the service accepts.  The WSGI layer uses :py:meth:`Router.match` to find the
service for an incoming path; actions use a :py:class:`ReverseRouter` to turn a semantic operation
name into a :py:class:`LinkDescriptor`.  Neither does any I/O.
"""
import re
from collections import OrderedDict, namedtuple
from collections.abc import Mapping
from typing import List, Tuple

from .errors import RouteResolutionError

ALL_METHODS = ("GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS")

_param_re = re.compile(r'\{(\w+)\}')

class LinkDescriptor(namedtuple("LinkDescriptor", ["name", "method", "href"])):
    """
    an immutable description of one reachable operation on a resource
    """
    __slots__ = ()

    def to_dict(self) -> Mapping:
        return OrderedDict([("name", self.name), ("href", self.href), ("method", self.method)])

class Route(object):
    """
    the path template and accepted methods for one service
    """

    def __init__(self, service: str, path: str, methods=None):
        self.service = service
        self.path = path.strip('/')
        self.methods = tuple(m.upper() for m in (methods or ALL_METHODS))
        self.params = _param_re.findall(self.path)

        # only the last occurrence of a repeated parameter is captured
        pat = ""
        pos = 0
        for i, m in enumerate(_param_re.finditer(self.path)):
            grp = "[^/]+"
            if m.group(1) not in self.params[i+1:]:
                grp = "(?P<%s>%s)" % (m.group(1), grp)
            pat += re.escape(self.path[pos:m.start()]) + grp
            pos = m.end()
        pat += re.escape(self.path[pos:])
        self._re = re.compile("^" + pat + r"(?:/(?P<_rest>.*))?$")

    def accepts(self, method: str) -> bool:
        return method.upper() in self.methods

    def match(self, path: str):
        """
        match the given path against this route's template.  
        :return:  a 2-tuple of the template parameter values and the remainder of the path after
                  the matched portion, or None if the path does not match
        """
        m = self._re.match(path.strip('/'))
        if not m:
            return None
        params = m.groupdict()
        rest = params.pop('_rest', None) or ""
        return (params, rest.strip('/'))

    def fill(self, **params) -> str:
        """
        return the route path with template parameters substituted; parameters not given are 
        left as literal placeholders.
        """
        return _param_re.sub(lambda m: str(params.get(m.group(1), m.group(0))), self.path)

    def __repr__(self):
        return "Route(%s: /%s)" % (self.service, self.path)

class Router(object):
    """
    a registry of service routes
    """

    def __init__(self, base_url: str=""):
        """
        :param str base_url:  the URL prefix to prepend to resolved paths (e.g. ``/api``)
        """
        self.base_url = base_url.rstrip('/')
        self._routes = OrderedDict()

    def connect(self, service: str, path: str=None, methods=None) -> Route:
        """
        register the route for a service.
        :param str service:  the name of the service
        :param str    path:  the path template, relative to the base URL; default: the service name
        :param list methods: the accepted HTTP methods; default: all of them
        """
        route = Route(service, path if path is not None else service, methods)
        self._routes[service] = route
        return route

    def route(self, service: str) -> Route:
        return self._routes.get(service)

    def services(self) -> List[str]:
        return list(self._routes.keys())

    def path_for(self, service: str, **params) -> str:
        """
        return the path to the given service's index, relative to the base URL
        :raises RouteResolutionError:  if the service has no registered route
        """
        route = self._routes.get(service)
        if not route:
            raise RouteResolutionError("No route registered for service " + str(service))
        return route.fill(**params)

    def resolve(self, owner: str, method: str, path: str) -> str:
        """
        return the full URI template for a path belonging to the given service
        :param str  owner:  the name of the service that owns the path
        :param str method:  the HTTP method that will be used with the path
        :param str   path:  the path relative to the base URL
        :raises RouteResolutionError:  if the owner has no route or the route does not accept 
                                       the method
        """
        route = self._routes.get(owner)
        if not route:
            raise RouteResolutionError("No route registered for service " + str(owner))
        if not route.accepts(method):
            raise RouteResolutionError("%s: route does not accept method %s" % (owner, method))
        return self.base_url + '/' + path.strip('/')

    def match(self, path: str) -> Tuple[str, Mapping, str]:
        """
        find the service that handles the given path (relative to the base URL).  Routes with 
        longer templates are tried first.
        :return:  a 3-tuple of the service name, the template parameter values, and the 
                  unmatched remainder of the path, or None if no route matches
        """
        routes = sorted(self._routes.values(), key=lambda r: len(r.path.split('/')), reverse=True)
        for route in routes:
            m = route.match(path)
            if m is not None:
                return (route.service, m[0], m[1])
        return None

class ReverseRouter(object):
    """
    a builder of links to the operations of one service
    """

    def __init__(self, router: Router, owner: str):
        self.router = router
        self.owner = owner

    def index_path(self, **params) -> str:
        """
        return the path to the owner's collection of resources, relative to the base URL
        """
        return self.router.path_for(self.owner, **params)

    def link(self, name: str, path: str, method: str) -> LinkDescriptor:
        """
        return a link descriptor for an operation
        :raises RouteResolutionError:  if the path cannot be resolved for the method
        """
        return LinkDescriptor(name, method.upper(), self.router.resolve(self.owner, method, path))
