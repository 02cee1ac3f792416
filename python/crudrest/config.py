"""
Utilities for obtaining a configuration for crudrest services and for setting up logging.

Configuration data is a (possibly nested) dictionary.  It can be read from a YAML or JSON
file (see :py:func:`load_from_file`) and combined with default values via
:py:func:`merge_config`.  Logging for the whole package is set up with :py:func:`configure_log`.
"""
import os, sys, json, logging
from collections.abc import Mapping
from copy import deepcopy

import yaml

from . import CrudRestException, system

global_logdir = None
global_logfile = None
_log_handler = None

LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s: %(message)s"
DEF_LOGFILE = system.system_abbrev + ".log"

class ConfigurationException(CrudRestException):
    """
    an exception indicating a problem with the configuration of a service or component
    """
    pass

def load_from_file(configfile: str) -> Mapping:
    """
    read the configuration from the given file and return it as a dictionary.  The file
    format is determined by its extension:  ``.yml`` and ``.yaml`` are read as YAML; all
    others are read as JSON.
    :raises ConfigurationException:  if the file cannot be read or parsed
    """
    try:
        with open(configfile) as fd:
            if configfile.endswith('.yml') or configfile.endswith('.yaml'):
                out = yaml.safe_load(fd)
            else:
                out = json.load(fd)
    except (OSError, ValueError, yaml.YAMLError) as ex:
        raise ConfigurationException("%s: unable to load configuration: %s" % (configfile, str(ex)),
                                     cause=ex) from ex

    if out is None:
        out = {}
    if not isinstance(out, Mapping):
        raise ConfigurationException("%s: configuration is not an object" % configfile)
    return out

def resolve_configuration(location) -> Mapping:
    """
    return the configuration data found at a given location.
    :param location:  either a path to a configuration file or a dictionary already containing
                      the configuration data (which is returned as a copy)
    """
    if isinstance(location, Mapping):
        return deepcopy(dict(location))
    if not isinstance(location, str):
        raise ConfigurationException("Unsupported configuration location type: " +
                                     str(type(location)))
    if not os.path.exists(location):
        raise ConfigurationException("%s: configuration file not found" % location)
    return load_from_file(location)

def merge_config(primary: Mapping, defconf: Mapping) -> Mapping:
    """
    merge two configurations, with values in the primary one overriding those in the default.
    Sub-dictionaries are merged recursively; all other values (including lists) are replaced.
    The returned dictionary is a new object; neither input is altered.
    """
    out = deepcopy(dict(defconf)) if defconf else {}
    for key, val in (primary or {}).items():
        if isinstance(val, Mapping) and isinstance(out.get(key), Mapping):
            out[key] = merge_config(val, out[key])
        else:
            out[key] = deepcopy(val)
    return out

def configure_log(logfile: str=None, level: int=None, format: str=None, config: Mapping=None,
                  addstderr=False):
    """
    configure the logging for the package.  Messages are written to a log file; if that is
    not determinable, messages go to standard error.

    :param str logfile:   the path to the log file to write to.  If relative, it will be relative
                          to the ``logdir`` configuration parameter.  If not given, the
                          ``logfile`` parameter from the configuration will be used.
    :param int   level:   the logging level to set; if not given, the ``loglevel`` configuration
                          parameter is used (default: logging.INFO)
    :param str  format:   the message format; if not given, ``LOG_FORMAT`` is used
    :param dict config:   the configuration to draw defaults from
    :param addstderr:     if True, also send messages to standard error.  This can also be a
                          format string to use for the messages sent to standard error.
    """
    global global_logdir, global_logfile, _log_handler
    if not config:
        config = {}
    if not logfile:
        logfile = config.get('logfile')
    if level is None:
        level = config.get('loglevel', logging.INFO)
        if isinstance(level, str):
            level = logging.getLevelName(level.upper())
            if not isinstance(level, int):
                raise ConfigurationException("loglevel: unrecognized logging level")
    if not format:
        format = config.get('logformat', LOG_FORMAT)

    rootlog = logging.getLogger(system.system_abbrev)
    if _log_handler:
        rootlog.removeHandler(_log_handler)
        _log_handler = None

    if logfile:
        global_logdir = config.get('logdir', global_logdir)
        if not os.path.isabs(logfile) and global_logdir:
            logfile = os.path.join(global_logdir, logfile)
        global_logfile = logfile
        _log_handler = logging.FileHandler(logfile)
    else:
        addstderr = False
        _log_handler = logging.StreamHandler(sys.stderr)

    _log_handler.setLevel(level)
    _log_handler.setFormatter(logging.Formatter(format))
    rootlog.addHandler(_log_handler)
    rootlog.setLevel(level)

    if addstderr:
        if not isinstance(addstderr, str):
            addstderr = format
        hdlr = logging.StreamHandler(sys.stderr)
        hdlr.setLevel(level)
        hdlr.setFormatter(logging.Formatter(addstderr))
        rootlog.addHandler(hdlr)

    rootlog.debug("logging configured for %s", system.system_name)
    return rootlog
