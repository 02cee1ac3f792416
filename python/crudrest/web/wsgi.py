"""
The WSGI transport for CRUD services.

A :py:class:`CrudWSGIApp` accepts requests under a base endpoint path, identifies the client, and
passes the request to a :py:class:`CrudServiceApp`, which finds the service whose route matches
the path and creates a :py:class:`CrudHandler` to process it.  The handler chooses a renderer
via content negotiation, runs the service's action, and renders its result or error.

An app is usually created from configuration with :py:func:`app`:

.. code-block::
   :caption: Example app configuration

   {
     "name": "library",
     "base_ep": "/api",
     "renderer": "json",
     "table_defaults": { "factory": "inmem" },
     "tables": [ { "name": "authors", ... }, { "name": "books", ... } ],
     "services": [
       { "name": "authors" },
       { "name": "books", "parent": "authors", "parent_id_name": "author_id" }
     ]
   }
"""
import json, re, logging
from collections import OrderedDict
from collections.abc import Mapping
from http import HTTPStatus
from logging import Logger
from typing import Callable, List
from urllib.parse import parse_qs
from wsgiref.headers import Headers

from .. import system
from ..config import ConfigurationException, merge_config
from ..table import create_registry, TableRegistry
from ..service import CrudService, Router, ApiError, Unauthorized, Response
from ..service.renderer import renderer_class, renderer_names
from .formats import Format, FormatSupport, Unacceptable, UnsupportedFormat, order_accepts

DEF_FORMAT_QP = "format"
BODY_METHODS = ("POST", "PUT", "PATCH")

deflog = logging.getLogger(system.system_abbrev).getChild("web")

class WSGIResponse(Response):
    """
    a Response that collects the status, content type, and body of a response so that they can be
    sent via a WSGI start-response function.
    """

    def __init__(self, headers: Mapping=None):
        self.code = 0
        self.ctype = None
        self.text = ""
        self.headers = Headers(list((headers or {}).items()))

    def status_code(self, code: int):
        self.code = code

    def type(self, mimetype: str):
        self.ctype = mimetype

    def body(self, text: str):
        self.text = text

    def header(self, name: str, value: str):
        # HTTP headers must be Latin-1 encodable
        (name.encode("ISO-8859-1"), str(value).encode("ISO-8859-1"))
        self.headers.add_header(name, str(value))

    @property
    def status(self) -> str:
        try:
            reason = HTTPStatus(self.code).phrase
        except ValueError:
            reason = "Unknown Status"
        return "%d %s" % (self.code, reason)

    def send(self, start_resp: Callable, ashead: bool=False, encoding: str='utf-8') -> List[bytes]:
        """
        deliver the collected response
        :param bool ashead:  if True, send the headers for the content but not the content itself
        """
        content = self.text.encode(encoding) if self.text else b''
        if self.ctype:
            self.headers.add_header("Content-Type", self.ctype)
        if content:
            self.headers.add_header("Content-Length", str(len(content)))
        start_resp(self.status, self.headers.items(), None)
        return [] if ashead or not content else [content]

def format_support(default: str=None) -> FormatSupport:
    """
    return a FormatSupport instance covering all registered renderers
    :param str default:  the name of the renderer to select when the client has no preference
    """
    out = FormatSupport()
    for name in renderer_names():
        cls = renderer_class(name)
        out.support(Format(name, cls.mimetype), cls.content_types, name == default)
    return out

class CrudHandler(object):
    """
    the handler for a single request on a CRUD service.
    """

    def __init__(self, path: str, wsgienv: Mapping, start_resp: Callable, service: CrudService,
                 parent_id=None, who=None, config: Mapping=None, log: Logger=None, app=None):
        """
        :param str       path:  the requested path relative to the service's route
        :param dict   wsgienv:  the WSGI request environment
        :param Callable start_resp:  the WSGI start-response function
        :param CrudService service:  the service handling the request
        :param      parent_id:  the parent record identifier from the route, for nested resources
        :param            who:  the identity of the client
        """
        self._path = path
        self._env = wsgienv
        self._start = start_resp
        self.service = service
        self.parent_id = parent_id
        self.who = who
        self.cfg = config if config is not None else {}
        self.log = log or deflog
        self._app = app

        self._meth = self._env.get('REQUEST_METHOD', 'GET').upper()
        if self._env.get('HTTP_X_HTTP_METHOD_OVERRIDE'):
            self._meth = self._env['HTTP_X_HTTP_METHOD_OVERRIDE'].upper()
        self._format_qp = self.cfg.get('format_qp', DEF_FORMAT_QP)
        self._fmtsup = format_support(self.service.cfg.get('renderer',
                                                           self.cfg.get('renderer', 'json')))

    def get_accepts(self) -> List[str]:
        accepts = self._env.get('HTTP_ACCEPT')
        if not accepts:
            return []
        return order_accepts(accepts)

    def get_requested_formats(self) -> List[str]:
        if self._format_qp and self._env.get('QUERY_STRING'):
            return parse_qs(self._env['QUERY_STRING']).get(self._format_qp, [])
        return []

    def select_format(self) -> Format:
        """
        determine the output format from the client's request
        :raises UnsupportedFormat:  if the client requests only unsupported formats
        :raises Unacceptable:  if none of the supported formats is acceptable to the client
        """
        fmt = self._fmtsup.select_format(self.get_requested_formats(), self.get_accepts())
        return fmt or self._fmtsup.default_format()

    def get_json_body(self):
        """
        read and parse the JSON request body, returning None if there is no body
        :raises ApiError:  (400) if the body cannot be parsed as JSON
        """
        try:
            clen = int(self._env.get('CONTENT_LENGTH') or 0)
        except ValueError:
            raise ApiError("Bad Content-Length", 400)
        if clen <= 0:
            return None
        try:
            body = self._env['wsgi.input'].read(clen)
            return json.loads(body, object_pairs_hook=OrderedDict)
        except (ValueError, UnicodeDecodeError) as ex:
            raise ApiError("Unable to parse input as JSON: " + str(ex), 400, cause=ex) from ex

    def handle(self):
        """
        process the request and return the response body
        """
        resp = WSGIResponse(getattr(self._app, 'include_headers', None))
        ashead = self._meth == "HEAD"
        try:
            fmt = self.select_format()
        except (UnsupportedFormat, Unacceptable) as ex:
            code = 406 if isinstance(ex, Unacceptable) else 400
            self.service.renderer(resp).respond_error(ApiError(str(ex), code))
            return resp.send(self._start, ashead)

        renderer = self.service.renderer(resp, fmt.name)
        if self._meth == "OPTIONS":
            return self.send_options(resp)

        try:
            data = self.get_json_body() if self._meth in BODY_METHODS else None
            result = self.service.dispatch(self._meth, self._path, data, self.parent_id)
            renderer.respond(result)
        except ApiError as ex:
            self.log.debug("%s %s: %s (%s)", self._meth, self._path, ex.message, ex.code)
            renderer.respond_error(ex)
        except Exception as ex:
            self.log.exception("Unexpected failure: " + str(ex))
            resp = WSGIResponse(getattr(self._app, 'include_headers', None))
            self.service.renderer(resp, fmt.name).respond_error(
                ApiError("Server failure", 500, cause=ex)
            )

        return resp.send(self._start, ashead)

    def send_options(self, resp: WSGIResponse):
        meths = ["GET", "HEAD", "OPTIONS"]
        if not self._path:
            meths.append("POST")
        elif self._path.strip('/') != "describe":
            meths.extend(["PUT", "PATCH", "DELETE"])
        resp.status_code(200)
        resp.header("Allow", ", ".join(meths))
        resp.header("Access-Control-Allow-Methods", ", ".join(meths))
        resp.header("Access-Control-Allow-Headers", "Content-Type")
        return resp.send(self._start)

class CrudServiceApp(object):
    """
    the WSGI-level dispatcher that routes a request path to the CRUD service that handles it
    """

    def __init__(self, router: Router, services: List[CrudService], log: Logger=None,
                 config: Mapping=None):
        self.router = router
        self.services = OrderedDict((s.name, s) for s in services)
        self.log = log or deflog
        self.cfg = config if config is not None else {}
        self.include_headers = dict(self.cfg.get('include_headers', {}))

    def send_error(self, error: ApiError, env: Mapping, start_resp: Callable):
        resp = WSGIResponse(self.include_headers)
        renderer_class(self.cfg.get('renderer', 'json'))(resp, self.cfg).respond_error(error)
        return resp.send(start_resp, env.get('REQUEST_METHOD', 'GET').upper() == "HEAD")

    def create_handler(self, env: Mapping, start_resp: Callable, path: str, who=None):
        """
        return the handler for a request on the given path, or None if no service handles it
        """
        m = self.router.match(path)
        if not m or m[0] not in self.services:
            return None
        svc = self.services[m[0]]
        return CrudHandler(m[2], env, start_resp, svc, m[1].get('parent_id'), who, self.cfg,
                           svc.log, self)

    def handle_path_request(self, env: Mapping, start_resp: Callable, path: str=None, who=None):
        if path is None:
            path = env.get('PATH_INFO', '')
        hdlr = self.create_handler(env, start_resp, path, who)
        if not hdlr:
            return self.send_error(ApiError("Not Found", 404), env, start_resp)
        return hdlr.handle()

    def __call__(self, env, start_resp):
        return self.handle_path_request(env, start_resp)

class Unauthenticated(Exception):
    """
    the client did not successfully authenticate itself
    """
    pass

class CrudWSGIApp(object):
    """
    the WSGI application exposing a set of CRUD services below a base endpoint path.

    This class recognizes the following configuration parameters:

    ``base_ep``
       the base endpoint path that all requested paths must start with
    ``name``
       a name for the app to use in log messages
    """

    def __init__(self, config: Mapping, svcapp: CrudServiceApp, log: Logger=None,
                 base_ep: str=None):
        self.cfg = config
        self.svcapp = svcapp
        self.log = log or deflog
        self.name = self.cfg.get('name', system.system_abbrev)
        if base_ep is None:
            base_ep = self.cfg.get('base_ep', "")
        base_ep = base_ep.strip('/')
        self.base_ep = '/%s/' % base_ep if base_ep else None

    def authenticate(self, env: Mapping):
        """
        determine and return the identity of the client.  This implementation returns None
        (anonymous); subclasses may override it to identify the client.
        :raises Unauthenticated:  if the client's credentials are invalid
        """
        return None

    def handle_request(self, env: Mapping, start_resp: Callable):
        path = re.sub(r'/+', '/', env.get('PATH_INFO', '/'))

        try:
            who = self.authenticate(env)
        except Unauthenticated as ex:
            self.log.debug("Authentication failure: %s", str(ex))
            return self.svcapp.send_error(Unauthorized(), env, start_resp)

        if self.base_ep:
            if path.startswith(self.base_ep):
                path = path[len(self.base_ep):]
            elif self.base_ep == path + '/':
                path = ''
            else:
                return self.svcapp.send_error(ApiError("Not Found", 404), env, start_resp)

        return self.svcapp.handle_path_request(env, start_resp, path.strip('/'), who)

    def __call__(self, env, start_resp):
        return self.handle_request(env, start_resp)

def create_services(config: Mapping, tables: TableRegistry, router: Router,
                    hooks: Mapping=None) -> List[CrudService]:
    """
    create the CRUD services described in the configuration.  Parent services must be listed
    before their children.
    :param dict  config:  the app configuration with a ``services`` list
    :param dict   hooks:  a mapping of service names to the HookRegistry instances to use
    """
    out = []
    svccfgs = config.get('services') or [{"name": n} for n in tables.names()]
    for scfg in svccfgs:
        if not scfg.get('name'):
            raise ConfigurationException("Missing required service config param: name")
        name = scfg['name']
        scfg = merge_config(scfg, {"renderer": config.get('renderer', 'json'),
                                   "debug": config.get('debug', False)})
        renderer_class(scfg['renderer'])
        out.append(CrudService(name, tables, router, scfg.get('table'), scfg.get('parent'),
                               scfg.get('parent_id_name'), (hooks or {}).get(name), scfg,
                               deflog.getChild(name)))
    return out

def app(config: Mapping, tables: TableRegistry=None, hooks: Mapping=None, log: Logger=None):
    """
    create the WSGI app from configuration data
    :param dict        config:  the app configuration
    :param TableRegistry tables:  the tables to serve; if None, they are created from the
                                  ``tables`` (and ``table_defaults``) configuration
    :param dict         hooks:  a mapping of service names to HookRegistry instances
    """
    if log is None:
        log = deflog
    if tables is None:
        if not config.get('tables'):
            raise ConfigurationException("Missing required config param: tables")
        tables = create_registry(config['tables'], config.get('table_defaults'))

    base_ep = config.get('base_ep', "").strip('/')
    router = Router(config.get('base_url', '/' + base_ep if base_ep else ""))
    services = create_services(config, tables, router, hooks)
    return CrudWSGIApp(config, CrudServiceApp(router, services, log, config), log)
