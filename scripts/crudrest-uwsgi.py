"""
the uWSGI script for launching the CRUD REST services

This script launches the web service using uwsgi.  For example, one can 
launch the service with the following command:

  uwsgi --plugin python3 --http-socket :9090 --wsgi-file crudrest-uwsgi.py     \
        --set-ph crudrest_config_file=crudrest_conf.yml

See the documentation for crudrest.web.wsgi for the configuration parameters supported by 
this service.

This script also pays attention to the following environment variables:

   CRUDREST_PYTHONPATH  The directory containing the crudrest python package.
   CRUDREST_CONFIG      The path to the configuration file; this is overridden by the 
                          crudrest_config_file uwsgi variable.
   CRUDREST_MONGODB_URL The MongoDB URL to use for tables that do not set their own; when 
                          set, tables default to the "mongo" factory.
"""
import os, sys, logging

try:
    import crudrest
except ImportError:
    libpath = os.environ.get('CRUDREST_PYTHONPATH')
    if libpath:
        sys.path.insert(0, libpath)
    import crudrest

from crudrest import config
from crudrest.web import wsgi

import uwsgi

def _dec(obj):
    # byte-decode an object if it is not None
    return obj.decode() if isinstance(obj, (bytes, bytearray)) else obj

confsrc = _dec(uwsgi.opt.get("crudrest_config_file")) or os.environ.get('CRUDREST_CONFIG')
if not confsrc:
    raise config.ConfigurationException("crudrest: configuration file not provided")
cfg = config.resolve_configuration(confsrc)

if os.environ.get("CRUDREST_MONGODB_URL"):
    cfg['table_defaults'] = config.merge_config(cfg.get('table_defaults', {}),
                                                {"factory": "mongo",
                                                 "db_url": os.environ['CRUDREST_MONGODB_URL']})

config.configure_log(config=cfg)

# uwsgi uses the "application" symbol as the WSGI application object
application = wsgi.app(cfg)

msg = f"CRUD REST services (v{crudrest.__version__}) ready"
print(msg)
logging.getLogger(crudrest.system.system_abbrev).info(msg)
