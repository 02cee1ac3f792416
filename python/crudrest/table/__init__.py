"""
table:  the tabular data source abstraction that backs REST resources.

A :py:class:`~crudrest.table.base.Table` provides the storage and query operations a resource
needs (find, get, new/patch/save/delete of entities) along with the metadata that describes the
resource (schema, validation rules, associations, primary key, alias).  Two implementations are
provided:

``inmem``
   :py:class:`~crudrest.table.inmem.InMemoryTable`, which keeps its records in memory
   (primarily for testing)
``mongo``
   :py:class:`~crudrest.table.mongo.MongoTable`, which stores its records in a MongoDB collection

Tables are typically created from configuration data via :py:func:`create_table`:

.. code-block::
   :caption: Example table configuration

   {
     "name": "articles",
     "factory": "inmem",
     "primary_key": "id",
     "columns": { "id": {"type": "integer"}, "title": {"type": "string", "length": 255} },
     "validation": { "title": { "required": true,
                                "rules": { "minLength": {"params": [3]} } } },
     "associations": { "BelongsTo": [ "authors" ] }
   }
"""
from collections.abc import Mapping
from typing import List

from .base import (Table, TableError, TableNotFound, RecordConflict, TableRegistry, Entity, Query,
                   Schema, Column, Association, Associations, AssociationType)
from .validation import Validator, FieldRules, Rule, RULES
from .inmem import InMemoryTable
from ..config import ConfigurationException, merge_config

def _table_kw(config: Mapping) -> Mapping:
    return {
        "schema":       Schema.from_config(config.get('columns')),
        "primary_key":  config.get('primary_key', "id"),
        "alias":        config.get('alias'),
        "validator":    Validator.from_config(config.get('validation')),
        "associations": Associations.from_config(config.get('associations')),
        "hidden":       config.get('hidden'),
        "accessible":   config.get('accessible')
    }

def create_table(config: Mapping) -> Table:
    """
    instantiate a :py:class:`Table` based on the given configuration
    """
    if not isinstance(config, Mapping):
        raise ConfigurationException("table config: not a dictionary: "+str(config))
    name = config.get('name')
    if not name:
        raise ConfigurationException("Missing required table config param: name")

    try:
        kw = _table_kw(config)
    except ValueError as ex:
        raise ConfigurationException("%s: bad table configuration: %s" % (name, str(ex)),
                                     cause=ex) from ex

    factory = config.get('factory', "inmem")
    if factory == "inmem":
        return InMemoryTable(name, config.get('records'), **kw)

    elif factory == "mongo":
        from .mongo import MongoTable
        dburl = config.get('db_url')
        if not dburl:
            raise ConfigurationException("Missing required config param for %s: db_url" % name)
        return MongoTable(name, dburl, **kw)

    raise ConfigurationException("%s: table factory type not supported: %s" % (name, factory))

def create_registry(configs: List[Mapping], defaults: Mapping=None) -> TableRegistry:
    """
    create a registry of tables from a list of table configurations.
    :param list configs:   the table configurations
    :param dict defaults:  configuration values to apply to every table (e.g. ``factory`` and
                           ``db_url``) unless overridden
    """
    return TableRegistry([create_table(merge_config(c, defaults or {})) for c in configs])
