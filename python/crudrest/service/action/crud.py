"""
The CRUD family of actions:  list, view, add, edit, delete, and describe operations on a resource
backed by a :py:class:`~crudrest.table.Table`.

:py:class:`CrudAction` provides the building blocks that the concrete actions compose:

* :py:meth:`~CrudAction._get_entities` -- list the resource's records
* :py:meth:`~CrudAction._get_entity` -- fetch one record by primary key
* :py:meth:`~CrudAction._new_entity` and :py:meth:`~CrudAction._patch_entity` -- create or
  update an entity from input data
* :py:meth:`~CrudAction._save` and :py:meth:`~CrudAction._delete` -- persist changes
* :py:meth:`~CrudAction._describe` -- build the resource's describe document

Along the way, these fire the hooks defined in :py:mod:`~crudrest.service.hooks`, each of which
may substitute the value it is given.
"""
from collections import OrderedDict
from collections.abc import Mapping
from typing import List

from ...table import Table, Entity, Query, TableNotFound, RecordConflict
from ..result import Result
from ..errors import ApiError, RecordNotFound, ValidationFailed
from ..hooks import HookRegistry, BEFORE_QUERY, AFTER_FIND, BEFORE_FIND_ONE, BEFORE_PATCH
from ..describe import describe_table
from .base import Action

class CrudAction(Action):
    """
    the base for actions that operate on a single table.  This class can be instantiated 
    directly to make use of its protected operations; the concrete subclasses implement 
    :py:meth:`execute`.
    """

    def __init__(self, service=None, table=None, id=None, id_name: str="id", parent_id=None,
                 parent_id_name: str=None, data=None, hooks: HookRegistry=None,
                 config: Mapping=None):
        """
        :param CrudService service:  the service the action is executed for
        :param table:   the table to operate on, given either as a Table instance or as the name 
                        of a table in the service's registry; if None, the service's default 
                        table is used
        :param id:      the identifier of the target record; for a composite primary key, a 
                        list of values
        :param str id_name:  the name of the identifier (as it appears in the route)
        :param parent_id:    the identifier of the parent record for a nested resource
        :param str parent_id_name:  the name of the field in this table that refers to the parent
        :param data:    the input data
        :raises TableNotFound:  if the table cannot be resolved
        """
        super(CrudAction, self).__init__(service, config, hooks, data)
        self._table = self._resolve_table(table)
        self._id = id
        self._id_name = id_name
        self._parent_id = parent_id
        self._parent_id_name = parent_id_name

    def _resolve_table(self, table) -> Table:
        if isinstance(table, Table):
            return table
        if table is None:
            if not self.service:
                raise TableNotFound(None, "No table given and no service to provide a default")
            table = self.service.table()
        if not self.service:
            raise TableNotFound(table, "Unable to look up table %s without a service" % table)
        return self.service.tables.get(table)

    def table(self) -> Table:
        """
        the table this action operates on
        """
        return self._table

    @property
    def id(self):
        return self._id

    @property
    def id_name(self) -> str:
        return self._id_name

    @property
    def parent_id(self):
        return self._parent_id

    @property
    def parent_id_name(self) -> str:
        return self._parent_id_name

    def _new_entity(self) -> Entity:
        return self._table.new_entity()

    def _patch_entity(self, entity: Entity, data: Mapping) -> Entity:
        """
        assign the given data to the entity and fire the ``before-patch`` hook, which may 
        substitute a different entity
        """
        entity = self._table.patch_entity(entity, data)
        return self.dispatch_hook(BEFORE_PATCH, entity, data=data)

    def _base_query(self) -> Query:
        return self._table.find()

    def _get_entities(self) -> List[Entity]:
        """
        return the records of the table.  The ``before-query`` hook may substitute the query 
        before it is executed, and the ``after-find`` hook may substitute the resulting records.
        """
        query = self.dispatch_hook(BEFORE_QUERY, self._base_query())
        records = query.all()
        return self.dispatch_hook(AFTER_FIND, records, query=query)

    def _parent_conditions(self) -> Mapping:
        """
        return the conditions that restrict a nested resource to the parent record's children
        """
        if self.parent_id_name and self.parent_id is not None:
            return OrderedDict([(self.parent_id_name, self.parent_id)])
        return OrderedDict()

    def _with_parent(self, data: Mapping) -> Mapping:
        data = OrderedDict(data)
        for field, value in self._parent_conditions().items():
            data[field] = self._table.cast(field, value)
        return data

    def _key_values(self, primary_key) -> list:
        if primary_key is None:
            return []
        if isinstance(primary_key, (list, tuple)):
            return list(primary_key)
        return [primary_key]

    def _get_entity(self, primary_key) -> Entity:
        """
        return the record with the given primary key
        :param primary_key:  the key value or, for a composite key, a list of values
        :raises RecordNotFound:  if the number of key values does not match the table's primary 
                                 key or if no record has the key (under the parent record, for a
                                 nested resource)
        """
        table = self._table
        keys = self._key_values(primary_key)
        pk = table.primary_key
        if len(keys) != len(pk):
            raise RecordNotFound('Record not found in table "%s" with primary key [%s]' %
                                 (table.name, ", ".join(repr(k) for k in keys) or "None"))

        conditions = OrderedDict((table.alias + '.' + f, v) for f, v in zip(pk, keys))
        conditions.update(self._parent_conditions())
        query = self.dispatch_hook(BEFORE_FIND_ONE, table.find().where(conditions),
                                   primary_key=keys)
        entity = query.first()
        if not entity:
            raise RecordNotFound('Record not found in table "%s"' % table.name)
        return entity

    def _save(self, entity: Entity) -> Entity:
        """
        persist the entity
        :raises ValidationFailed:  if the entity has errors or its primary key is missing or taken
        """
        try:
            saved = self._table.save(entity)
        except RecordConflict as ex:
            for field in ex.fields:
                entity.add_error(field, str(ex))
            raise ValidationFailed("Validation on %s failed" % self._table.alias,
                                   errors=entity.errors, cause=ex) from ex
        if not saved:
            raise ValidationFailed("Validation on %s failed" % self._table.alias,
                                   errors=entity.errors)
        return entity

    def _delete(self, primary_key) -> bool:
        entity = self._get_entity(primary_key)
        if not self._table.delete(entity):
            raise RecordNotFound('Record not found in table "%s"' % self._table.name)
        return True

    def _describe(self) -> Mapping:
        """
        return the describe document for this action's resource
        """
        rrouter = None
        if self.service and self.service.router:
            rrouter = self.service.reverse_router()
        params = {}
        if self._parent_id is not None:
            params['parent_id'] = self._parent_id
        return describe_table(self._table, rrouter, self._new_entity().hidden, **params)

    def _require_data(self):
        if not isinstance(self.data, Mapping):
            raise ApiError("Input data must be a JSON object", 400)
        return True

    def execute(self):
        """
        not supported here:  a plain CrudAction only provides the building blocks that the 
        concrete actions below use to implement this method
        """
        raise NotImplementedError(type(self).__name__ + " does not implement execute()")

class IndexAction(CrudAction):
    """
    list the records of a resource (restricted to the parent record's children for a nested 
    resource)
    """

    def _base_query(self) -> Query:
        return super(IndexAction, self)._base_query().where(self._parent_conditions())

    def execute(self):
        return Result(self._get_entities())

class ViewAction(CrudAction):
    """
    return one record of a resource
    """

    def execute(self):
        return Result(self._get_entity(self.id))

class AddAction(CrudAction):
    """
    create a new record
    """

    def validates(self):
        return self._require_data()

    def execute(self):
        entity = self._patch_entity(self._new_entity(), self._with_parent(self.data))
        return Result(self._save(entity), 201)

class EditAction(CrudAction):
    """
    update an existing record
    """

    def validates(self):
        return self._require_data()

    def execute(self):
        entity = self._patch_entity(self._get_entity(self.id), self._with_parent(self.data))
        return Result(self._save(entity))

class DeleteAction(CrudAction):
    """
    delete a record
    """

    def execute(self):
        return Result(self._delete(self.id))

class DescribeAction(CrudAction):
    """
    return the describe document for a resource
    """

    def execute(self):
        return Result(self._describe())
