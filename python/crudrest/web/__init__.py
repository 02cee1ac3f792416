"""
The web layer:  content negotiation support and the WSGI application that exposes CRUD services
over HTTP (see :py:mod:`~crudrest.web.wsgi`).
"""
from .formats import (Format, FormatSupport, Unacceptable, UnsupportedFormat, order_accepts,
                      match_accept)
