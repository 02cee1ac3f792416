"""
Renderers that serialize action results and errors to a wire format.  Renderers are looked up 
by name (``xml``, ``json``, or ``raw``), by class name, or by a fully qualified class name 
via :py:func:`create_renderer`.
"""
import importlib
from collections import OrderedDict
from collections.abc import Mapping
from typing import List

from ...config import ConfigurationException
from .base import Response, Renderer, to_data
from .xml import XmlRenderer
from .json import JsonRenderer
from .raw import RawRenderer

_renderers = OrderedDict()

def register_renderer(cls, name: str=None):
    """
    make a Renderer class available by name
    """
    if not isinstance(cls, type) or not issubclass(cls, Renderer):
        raise TypeError("register_renderer(): not a Renderer class: " + repr(cls))
    _renderers[name or cls.name] = cls
    return cls

for _cls in (XmlRenderer, JsonRenderer, RawRenderer):
    register_renderer(_cls)

def renderer_names() -> List[str]:
    return list(_renderers.keys())

def renderer_class(spec) -> type:
    """
    return the Renderer class identified by the given name or class
    :raises ConfigurationException:  if the renderer cannot be identified
    """
    if isinstance(spec, type):
        if issubclass(spec, Renderer):
            return spec
        raise ConfigurationException("Not a Renderer class: " + spec.__name__)

    if not isinstance(spec, str) or not spec:
        raise ConfigurationException("Unrecognized renderer specification: " + repr(spec))
    if spec.lower() in _renderers:
        return _renderers[spec.lower()]
    for cls in _renderers.values():
        if cls.__name__ == spec:
            return cls

    if '.' in spec:
        modname, clsname = spec.rsplit('.', 1)
        try:
            cls = getattr(importlib.import_module(modname), clsname)
        except (ImportError, AttributeError) as ex:
            raise ConfigurationException("Unable to load renderer class %s: %s" % (spec, str(ex)),
                                         cause=ex) from ex
        return renderer_class(cls)

    raise ConfigurationException("Unknown renderer: " + spec)

def create_renderer(spec, response: Response, config: Mapping=None) -> Renderer:
    """
    instantiate a renderer
    :param spec:  the renderer's registered name, class name, fully qualified class name, or class
    :param Response response:  the response the renderer should write to
    :param dict config:  the renderer's configuration
    """
    return renderer_class(spec)(response, config)
