"""
The abstract interface for the tabular data source that backs a REST resource.

This interface is based on the following model:

  *  Each resource is backed by a :py:class:`Table`, a named collection of records with a fixed
     primary key, a column schema, a set of validation rules, and associations to other tables.
  *  Each record is delivered as an :py:class:`Entity`, an ordered mapping of field values that
     also carries the validation errors found when it was last patched.
  *  Records are selected through a :py:class:`Query`, which is built up before it is executed
     so that callers can alter it (e.g. via hooks) along the way.

Concrete storage engines (see :py:mod:`~crudrest.table.inmem` and :py:mod:`~crudrest.table.mongo`)
implement a handful of protected methods; everything else is provided here.
"""
from abc import ABC, abstractmethod
from collections import OrderedDict
from collections.abc import Mapping, Sequence
from copy import deepcopy
from enum import Enum
from typing import List, Iterator

from .. import CrudRestException
from .validation import Validator

class TableError(CrudRestException):
    """
    an exception indicating a failure in the underlying storage while accessing a table
    """
    pass

class RecordConflict(TableError):
    """
    an exception indicating that a record could not be stored because its primary key is missing
    or already taken by another record
    """
    def __init__(self, message, fields=None, cause=None):
        super(RecordConflict, self).__init__(message, cause)
        self.fields = list(fields or [])

class TableNotFound(TableError):
    """
    an exception indicating that a table requested by name is not known
    """
    def __init__(self, name, message=None):
        if not message:
            message = "Table not found: " + str(name)
        super(TableNotFound, self).__init__(message)
        self.name = name

class Entity(object):
    """
    a single record from a table.  Field values are kept in the order they were set.  In
    addition to its data, an entity carries a bag of validation errors (field name mapped to a
    list of messages) and a flag indicating whether it has yet to be saved.
    """

    def __init__(self, data: Mapping=None, new: bool=True, source: str=None, hidden=None):
        """
        :param dict   data:  the initial field values
        :param bool    new:  True if the entity has not been saved to storage yet
        :param str  source:  the name of the table the entity belongs to
        :param list hidden:  the names of fields that should never be exposed in output
        """
        self._fields = OrderedDict(data or {})
        self._errors = OrderedDict()
        self._new = new
        self._hidden = list(hidden or [])
        self.source = source

    @property
    def hidden(self) -> List[str]:
        """
        the names of the fields that are not to be exposed when this entity is serialized
        """
        return list(self._hidden)

    def is_new(self) -> bool:
        return self._new

    def set_new(self, new: bool):
        self._new = new

    def get(self, name, default=None):
        return self._fields.get(name, default)

    def set(self, name, value):
        self._fields[name] = value
        return self

    def update(self, data: Mapping):
        for name, value in data.items():
            self._fields[name] = value
        return self

    def fields(self) -> List[str]:
        return list(self._fields.keys())

    def __getitem__(self, name):
        return self._fields[name]

    def __setitem__(self, name, value):
        self._fields[name] = value

    def __contains__(self, name):
        return name in self._fields

    @property
    def errors(self) -> Mapping:
        """
        the validation errors found for this entity, as a dictionary mapping field names to
        lists of messages
        """
        return deepcopy(self._errors)

    def set_errors(self, errors: Mapping):
        """
        replace the current error bag with the given errors
        """
        self._errors = OrderedDict((k, list(v)) for k, v in errors.items())

    def add_error(self, field: str, message: str):
        self._errors.setdefault(field, []).append(message)

    def has_errors(self) -> bool:
        return bool(self._errors)

    def data(self) -> Mapping:
        """
        return a copy of all the field data, including hidden fields
        """
        return deepcopy(self._fields)

    def to_dict(self) -> Mapping:
        """
        return the visible field data
        """
        return OrderedDict((k, deepcopy(v)) for k, v in self._fields.items()
                           if k not in self._hidden)

    def __eq__(self, other):
        return isinstance(other, Entity) and self.source == other.source and \
               self._fields == other._fields

    def __repr__(self):
        return "Entity(%s: %s)" % (self.source, dict(self._fields))

class Column(object):
    """
    the definition of a single column of a table
    """
    def __init__(self, name: str, type: str="string", null: bool=True, default=None,
                 length: int=None, precision: int=None, comment: str=None):
        self.name = name
        self.type = type
        self.null = null
        self.default = default
        self.length = length
        self.precision = precision
        self.comment = comment

    def to_dict(self) -> Mapping:
        return OrderedDict([
            ("type", self.type),
            ("length", self.length),
            ("precision", self.precision),
            ("null", self.null),
            ("default", self.default),
            ("comment", self.comment)
        ])

    @classmethod
    def from_config(cls, name: str, config: Mapping):
        if isinstance(config, str):
            config = {"type": config}
        config = config or {}
        return cls(name, config.get('type', "string"), config.get('null', True),
                   config.get('default'), config.get('length'), config.get('precision'),
                   config.get('comment'))

class Schema(object):
    """
    the ordered set of column definitions for a table
    """
    def __init__(self, columns: List[Column]=None):
        self._cols = OrderedDict()
        for col in (columns or []):
            self.add_column(col)

    def add_column(self, column: Column):
        self._cols[column.name] = column
        return self

    def columns(self) -> List[str]:
        """
        return the names of the columns in order
        """
        return list(self._cols.keys())

    def column(self, name: str) -> Mapping:
        """
        return the definition of the named column as a dictionary, or None if it is not defined
        """
        col = self._cols.get(name)
        return col.to_dict() if col else None

    def has_column(self, name: str) -> bool:
        return name in self._cols

    def __len__(self):
        return len(self._cols)

    @classmethod
    def from_config(cls, config: Mapping):
        return cls([Column.from_config(n, c) for n, c in (config or {}).items()])

class AssociationType(Enum):
    """
    the kinds of relationships a table can have with another
    """
    BELONGS_TO = "BelongsTo"
    HAS_ONE = "HasOne"
    HAS_MANY = "HasMany"
    BELONGS_TO_MANY = "BelongsToMany"

class Association(object):
    """
    a relationship from one table to another (the target)
    """
    def __init__(self, kind: AssociationType, name: str, target: str, foreign_key: str=None):
        self.kind = AssociationType(kind)
        self.name = name
        self.target = target
        self.foreign_key = foreign_key

    def __repr__(self):
        return "Association(%s %s -> %s)" % (self.kind.value, self.name, self.target)

class Associations(object):
    """
    the collection of associations defined for a table
    """
    def __init__(self, assocs: List[Association]=None):
        self._assocs = list(assocs or [])

    def add(self, assoc: Association):
        self._assocs.append(assoc)
        return self

    def of_type(self, kind: AssociationType) -> List[Association]:
        """
        return the associations of a given kind in the order they were added
        """
        kind = AssociationType(kind)
        return [a for a in self._assocs if a.kind == kind]

    def get(self, name: str) -> Association:
        for assoc in self._assocs:
            if assoc.name == name:
                return assoc
        return None

    def __iter__(self):
        return iter(self._assocs)

    def __len__(self):
        return len(self._assocs)

    @classmethod
    def from_config(cls, config: Mapping):
        """
        create the collection from a dictionary mapping association kind names (e.g. "HasMany")
        to lists of associations; each association is given either as a target table name or as
        an object with ``target`` and optional ``name`` and ``foreign_key`` properties.
        """
        out = cls()
        for kind, assocs in (config or {}).items():
            kind = AssociationType(kind)
            for assoc in assocs or []:
                if isinstance(assoc, str):
                    assoc = {"target": assoc}
                target = assoc.get('target')
                if not target:
                    raise ValueError("association of type %s is missing its target" % kind.value)
                out.add(Association(kind, assoc.get('name', target.capitalize()), target,
                                    assoc.get('foreign_key')))
        return out

class Query(object):
    """
    a selection of records from a table that is built up before it is executed.  Conditions are
    given as a mapping of field names to required values; a field name may be qualified with the
    table alias (e.g. "Articles.id").
    """

    def __init__(self, table, conditions: Mapping=None):
        self.table = table
        self._conds = OrderedDict()
        self._order = []
        self._limit = None
        self._offset = 0
        if conditions:
            self.where(conditions)

    def where(self, conditions: Mapping):
        """
        add equality conditions to this query
        :return:  self, so that calls can be chained
        """
        for field, value in conditions.items():
            field = self.table.unqualify(field)
            self._conds[field] = self.table.cast(field, value)
        return self

    def order(self, field: str, desc: bool=False):
        self._order.append((self.table.unqualify(field), desc))
        return self

    def limit(self, count: int):
        self._limit = count
        return self

    def offset(self, count: int):
        self._offset = count
        return self

    @property
    def conditions(self) -> Mapping:
        return OrderedDict(self._conds)

    @property
    def ordering(self) -> List[tuple]:
        return list(self._order)

    @property
    def max_count(self) -> int:
        return self._limit

    @property
    def skip_count(self) -> int:
        return self._offset

    def copy(self):
        out = Query(self.table, self._conds)
        out._order = list(self._order)
        out._limit = self._limit
        out._offset = self._offset
        return out

    def all(self) -> List[Entity]:
        """
        execute the query and return the matching records as a list of Entity instances
        """
        return self.table._execute(self)

    def first(self) -> Entity:
        """
        execute the query and return the first matching record, or None if there are no matches
        """
        hits = self.copy().limit(1).all()
        return hits[0] if hits else None

    def __iter__(self) -> Iterator[Entity]:
        return iter(self.all())

class Table(ABC):
    """
    a named collection of records that backs a REST resource.

    Subclasses provide the storage by implementing :py:meth:`_execute`, :py:meth:`_insert`,
    :py:meth:`_update`, and :py:meth:`_remove`.
    """

    def __init__(self, name: str, schema: Schema=None, primary_key="id", alias: str=None,
                 validator: Validator=None, associations: Associations=None, hidden=None,
                 accessible=None):
        """
        :param str             name:  the name of the table
        :param Schema        schema:  the column definitions
        :param          primary_key:  the name of the primary key field or a list of names for a
                                      composite key
        :param str            alias:  the display name of the table (used to qualify field names);
                                      defaults to the capitalized ``name``
        :param Validator  validator:  the validation rules for input data
        :param Associations associations:  the relationships to other tables
        :param list          hidden:  the fields never to be exposed in output
        :param list      accessible:  the fields that may be assigned by patching; by default, all
                                      fields except (non-new) primary key fields
        """
        self._name = name
        self._schema = schema if schema is not None else Schema()
        if isinstance(primary_key, str):
            primary_key = [primary_key]
        if not primary_key:
            raise ValueError("Table %s: at least one primary key field is required" % name)
        self._pk = list(primary_key)
        self._alias = alias or "".join(p.capitalize() for p in name.split('_'))
        self._validator = validator if validator is not None else Validator()
        self._assocs = associations if associations is not None else Associations()
        self._hidden = list(hidden or [])
        self._accessible = list(accessible) if accessible is not None else None

    @property
    def name(self) -> str:
        return self._name

    @property
    def alias(self) -> str:
        return self._alias

    @property
    def primary_key(self) -> List[str]:
        return list(self._pk)

    @property
    def schema(self) -> Schema:
        return self._schema

    @property
    def validator(self) -> Validator:
        return self._validator

    @property
    def associations(self) -> Associations:
        return self._assocs

    @property
    def generates_keys(self) -> bool:
        """
        True if this table assigns primary key values to new records itself.  This is the case
        when the key is a single field that is not declared or is declared as an integer.
        """
        if len(self._pk) != 1:
            return False
        col = self._schema.column(self._pk[0])
        return not col or col['type'] in ("integer", "int", "biginteger")

    def unqualify(self, field: str) -> str:
        """
        strip the table alias from a qualified field name
        """
        prefix = self._alias + '.'
        if field.startswith(prefix):
            return field[len(prefix):]
        return field

    def cast(self, field: str, value):
        """
        convert a value (e.g. one taken from a URL path) to the type declared for the given
        column.  Values that cannot be converted are returned unchanged.
        """
        col = self._schema.column(field)
        if not col or not isinstance(value, (str, list, tuple)):
            return value
        if isinstance(value, (list, tuple)):
            return [self.cast(field, v) for v in value]
        try:
            if col["type"] in ("integer", "int", "biginteger"):
                return int(value)
            if col["type"] in ("float", "decimal"):
                return float(value)
        except ValueError:
            pass
        return value

    def find(self, conditions: Mapping=None) -> Query:
        """
        start a query on this table
        """
        return Query(self, conditions)

    def get(self, primary_key) -> Entity:
        """
        return the record with the given primary key or None if it does not exist.
        :param primary_key:  the key value or, for a composite key, a list of values
        """
        if isinstance(primary_key, (str, int)) or not isinstance(primary_key, Sequence):
            primary_key = [primary_key]
        if len(primary_key) != len(self._pk):
            return None
        return self.find(OrderedDict(zip(self._pk, primary_key))).first()

    def new_entity(self, data: Mapping=None) -> Entity:
        """
        create a new, unsaved entity, optionally patched with the given data
        """
        out = Entity(new=True, source=self._name, hidden=self._hidden)
        if data:
            out = self.patch_entity(out, data)
        return out

    def is_accessible(self, field: str, entity: Entity) -> bool:
        """
        return True if the given field may be assigned to the entity by patching
        """
        if field in self._pk and (not entity.is_new() or self.generates_keys):
            return False
        if self._accessible is not None:
            return field in self._accessible
        return len(self._schema) == 0 or self._schema.has_column(field)

    def patch_entity(self, entity: Entity, data: Mapping) -> Entity:
        """
        validate the given data and assign its accessible, valid fields to the entity.  The
        validation errors replace those previously recorded in the entity.
        """
        errors = self._validator.errors(data, entity.is_new())
        entity.set_errors(errors)
        for field, value in data.items():
            if field not in errors and self.is_accessible(field, entity):
                entity.set(field, deepcopy(value))
        return entity

    def _key_for(self, entity: Entity) -> Mapping:
        return OrderedDict((k, entity.get(k)) for k in self._pk)

    def _hydrate(self, record: Mapping) -> Entity:
        return Entity(record, False, self._name, self._hidden)

    def save(self, entity: Entity) -> bool:
        """
        persist the given entity.  If the storage assigns values (e.g. a generated primary key),
        they are set on the entity.
        :return:  False if the entity has validation errors and was not saved, True otherwise
        """
        if entity.has_errors():
            return False

        if entity.is_new():
            assigned = self._insert(entity.data())
            if assigned:
                entity.update(assigned)
            entity.set_new(False)
            return True

        return self._update(self._key_for(entity), entity.data())

    def delete(self, entity: Entity) -> bool:
        """
        remove the given entity from storage
        :return:  True if the record was found and removed
        """
        if entity.is_new():
            return False
        return self._remove(self._key_for(entity))

    @abstractmethod
    def _execute(self, query: Query) -> List[Entity]:
        """
        return the records matching the given query
        """
        raise NotImplementedError()

    @abstractmethod
    def _insert(self, data: Mapping) -> Mapping:
        """
        store a new record and return a dictionary of any field values assigned by the storage
        """
        raise NotImplementedError()

    @abstractmethod
    def _update(self, key: Mapping, data: Mapping) -> bool:
        """
        replace the record with the given key; return False if it does not exist
        """
        raise NotImplementedError()

    @abstractmethod
    def _remove(self, key: Mapping) -> bool:
        """
        remove the record with the given key; return False if it does not exist
        """
        raise NotImplementedError()

class TableRegistry(object):
    """
    a look-up of tables by name
    """

    def __init__(self, tables: List[Table]=None):
        self._tables = OrderedDict()
        for table in (tables or []):
            self.add(table)

    def add(self, table: Table):
        self._tables[table.name] = table
        return table

    def get(self, name: str) -> Table:
        """
        return the table with the given name
        :raises TableNotFound:  if no such table is registered
        """
        if name not in self._tables:
            raise TableNotFound(name)
        return self._tables[name]

    def names(self) -> List[str]:
        return list(self._tables.keys())

    def __contains__(self, name):
        return name in self._tables
