"""
Named extension points that let a consumer observe or replace values flowing through an action.

A :py:class:`HookRegistry` holds an ordered list of callbacks for each of a fixed set of hook
names.  When an action reaches a hook point it calls :py:meth:`HookRegistry.fire` with the
in-flight value (a query, an entity, or a list of records); each callback receives that value
and may return a replacement for it.  A callback that returns None leaves the value unchanged.

.. code-block::
   :caption: Restricting a listing to published articles

   hooks = HookRegistry()
   hooks.register(BEFORE_QUERY, lambda query, action: query.where({"published": True}))
"""
import logging
from collections import OrderedDict
from collections.abc import Mapping, Callable
from typing import List

from .. import system

BEFORE_QUERY = "before-query"
AFTER_FIND = "after-find"
BEFORE_FIND_ONE = "before-find-one"
BEFORE_PATCH = "before-patch"

HOOK_NAMES = (BEFORE_QUERY, AFTER_FIND, BEFORE_FIND_ONE, BEFORE_PATCH)

log = logging.getLogger(system.system_abbrev).getChild("hooks")

class HookRegistry(object):
    """
    an ordered registry of callbacks keyed by hook name
    """

    def __init__(self, hooks: Mapping=None):
        """
        :param dict hooks:  initial callbacks:  a mapping of hook names to a callback or a list
                            of callbacks
        """
        self._slots = OrderedDict((name, []) for name in HOOK_NAMES)
        for name, callbacks in (hooks or {}).items():
            if callable(callbacks):
                callbacks = [callbacks]
            for cb in callbacks:
                self.register(name, cb)

    def _check(self, name):
        if name not in self._slots:
            raise ValueError("Unrecognized hook name: %s (expected one of %s)" %
                             (name, ", ".join(HOOK_NAMES)))

    def register(self, name: str, callback: Callable):
        """
        append a callback to the named hook.  The callback will be called with the in-flight
        value, the action firing the hook, and any extra context as keyword arguments.
        """
        self._check(name)
        if not callable(callback):
            raise TypeError("hook callback is not callable: " + repr(callback))
        self._slots[name].append(callback)
        return self

    def on(self, name: str):
        """
        return a decorator that registers the decorated function on the named hook
        """
        def decorate(func):
            self.register(name, func)
            return func
        return decorate

    def callbacks(self, name: str) -> List[Callable]:
        self._check(name)
        return list(self._slots[name])

    def fire(self, name: str, value, action=None, **context):
        """
        pass the value through each of the named hook's callbacks in registration order and
        return the (possibly replaced) value
        """
        self._check(name)
        for cb in self._slots[name]:
            out = cb(value, action, **context)
            if out is not None:
                log.debug("%s: value replaced by %s", name, getattr(cb, '__name__', repr(cb)))
                value = out
        return value

    def copy(self):
        out = HookRegistry()
        for name, callbacks in self._slots.items():
            out._slots[name] = list(callbacks)
        return out
