"""
crudrest:  a generic REST resource layer over an abstract tabular data source.

This package is organized into the following modules:

``config``
    utilities for loading configuration data and for setting up logging
``table``
    the abstract Table interface that a resource is backed by, along with the Entity, Schema, 
    validation, and association models and two implementations (in-memory and MongoDB)
``service``
    the generic action/describe/render pipeline:  CRUD actions that operate on a Table, the 
    describe facility that produces self-describing metadata about a resource, and the renderers 
    that turn action results and errors into HTTP response bodies.
``web``
    support for delivering services over WSGI, including content negotiation
"""
try:
    from .version import __version__
except ImportError:
    __version__ = "(unset)"

_SYSNAME = "CRUD REST Resource Layer"
_SYSABBREV = "crudrest"

class SystemInfo(object):
    """
    a container for identifying information about the running system (e.g. for use in 
    log messages and in ready responses)
    """
    def __init__(self, sysname, sysabbrev, subsysname="", subsysabbrev="", version=__version__):
        self.system_name = sysname
        self.system_abbrev = sysabbrev
        self.subsystem_name = subsysname
        self.subsystem_abbrev = subsysabbrev
        self.system_version = version

    def getSysLogger(self):
        """
        return the Logger that should be used for system-level messages
        """
        import logging
        return logging.getLogger(self.system_abbrev)

system = SystemInfo(_SYSNAME, _SYSABBREV)

class CrudRestException(Exception):
    """
    a general base class for exceptions raised by this package
    """

    def __init__(self, message=None, cause=None):
        if not message:
            message = str(cause) if cause else "Unknown crudrest failure"
        super(CrudRestException, self).__init__(message)
        self.cause = cause
