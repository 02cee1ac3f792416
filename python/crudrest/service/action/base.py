"""
The base class for actions
"""
import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping

from ... import system
from ..result import Result
from ..hooks import HookRegistry

class Action(ABC):
    """
    a single operation to be executed on behalf of a service.  Subclasses implement 
    :py:meth:`execute`; callers should invoke :py:meth:`process`, which checks the input via 
    :py:meth:`validates` before executing.
    """

    def __init__(self, service=None, config: Mapping=None, hooks: HookRegistry=None, data=None):
        """
        :param CrudService service:  the service the action is being executed for
        :param dict         config:  the action's configuration; by default, the service's
        :param HookRegistry  hooks:  the hooks to fire; by default, a copy of the service's 
                                     registry (or an empty one if there is no service)
        :param                data:  the input data (e.g. the parsed request body)
        """
        self.service = service
        if config is None:
            config = service.cfg if service else {}
        self.cfg = config
        if hooks is None:
            hooks = service.hooks.copy() if service else HookRegistry()
        self.hooks = hooks
        self.data = data

        if service and service.log:
            self.log = service.log.getChild(type(self).__name__)
        else:
            self.log = logging.getLogger(system.system_abbrev).getChild("action")

    def validates(self) -> bool:
        """
        check that the input is sufficient for executing this action.
        :raises ApiError:  if the input is unacceptable
        """
        return True

    @abstractmethod
    def execute(self):
        """
        carry out the action and return a :py:class:`~crudrest.service.result.Result` (or 
        the payload for a successful result)
        :raises ApiError:  if the operation fails
        """
        raise NotImplementedError()

    def process(self) -> Result:
        """
        validate the input, execute the action, and return its result
        """
        self.validates()
        self.log.debug("executing %s", type(self).__name__)
        out = self.execute()
        if not isinstance(out, Result):
            out = Result(out)
        return out

    def dispatch_hook(self, name: str, value, **context):
        """
        fire the named hook on the given value and return the value that results
        """
        return self.hooks.fire(name, value, self, **context)
