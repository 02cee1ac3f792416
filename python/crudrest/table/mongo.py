"""
an implementation of the :py:class:`~crudrest.table.base.Table` interface using a MongoDB
collection to store the records.
"""
from collections import OrderedDict
from collections.abc import Mapping
from typing import List

from pymongo import MongoClient, ReturnDocument, ASCENDING, DESCENDING
from pymongo.errors import PyMongoError, DuplicateKeyError

from . import base

COUNTERS_COLL = "_counters"

class MongoTable(base.Table):
    """
    a Table whose records are stored in a MongoDB collection of the same name.  Generated
    primary keys are drawn from a sequence kept in a separate counters collection.
    """

    def __init__(self, name: str, dburl: str=None, client: MongoClient=None, **kw):
        """
        connect the table to its collection.
        :param str         name:  the name of the table (and of the collection)
        :param str        dburl:  the MongoDB URL, including the database name
        :param MongoClient client:  a client to use in lieu of a URL; its default database is used
        :param kw:  other parameters accepted by :py:class:`~crudrest.table.base.Table`
        """
        super(MongoTable, self).__init__(name, **kw)
        if not client:
            if not dburl:
                raise ValueError("MongoTable: either dburl or client must be provided")
            client = MongoClient(dburl)
        self._cli = client
        self._db = self._cli.get_default_database()

    @property
    def native(self):
        """
        the pymongo collection holding the records
        """
        return self._db[self._name]

    def _to_mongo_filter(self, conds: Mapping) -> Mapping:
        out = OrderedDict()
        for field, value in conds.items():
            if isinstance(value, (list, tuple, set)):
                out[field] = {"$in": list(value)}
            else:
                out[field] = value
        return out

    def _execute(self, query: base.Query) -> List[base.Entity]:
        try:
            cur = self.native.find(self._to_mongo_filter(query.conditions), {"_id": False})
            if query.ordering:
                cur = cur.sort([(f, DESCENDING if desc else ASCENDING) for f, desc in query.ordering])
            if query.skip_count:
                cur = cur.skip(query.skip_count)
            if query.max_count is not None:
                cur = cur.limit(query.max_count)
            return [self._hydrate(rec) for rec in cur]
        except PyMongoError as ex:
            raise base.TableError("%s: query failed due to MongoDB failure: %s" %
                                  (self._name, str(ex)), cause=ex) from ex

    def _next_recnum(self) -> int:
        counter = self._db[COUNTERS_COLL].find_one_and_update(
            {"_id": self._name}, {"$inc": {"next": 1}},
            upsert=True, return_document=ReturnDocument.AFTER
        )
        return counter["next"]

    def _insert(self, data: Mapping) -> Mapping:
        assigned = {}
        data = dict(data)
        try:
            if self.generates_keys and data.get(self._pk[0]) is None:
                data[self._pk[0]] = self._next_recnum()
                assigned[self._pk[0]] = data[self._pk[0]]
            key = OrderedDict((k, data.get(k)) for k in self._pk)
            if self.native.count_documents(key, limit=1):
                raise base.RecordConflict("%s: record with primary key %s already exists" %
                                          (self._name, str(list(key.values()))), self._pk)
            self.native.insert_one(data)
        except DuplicateKeyError as ex:
            raise base.RecordConflict("%s: record with primary key %s already exists" %
                                      (self._name, str([data.get(k) for k in self._pk])),
                                      self._pk, ex) from ex
        except PyMongoError as ex:
            raise base.TableError("%s: insert failed due to MongoDB failure: %s" %
                                  (self._name, str(ex)), cause=ex) from ex
        return assigned

    def _update(self, key: Mapping, data: Mapping) -> bool:
        try:
            result = self.native.replace_one(dict(key), dict(data))
        except PyMongoError as ex:
            raise base.TableError("%s: update failed due to MongoDB failure: %s" %
                                  (self._name, str(ex)), cause=ex) from ex
        return result.matched_count > 0

    def _remove(self, key: Mapping) -> bool:
        try:
            result = self.native.delete_one(dict(key))
        except PyMongoError as ex:
            raise base.TableError("%s: delete failed due to MongoDB failure: %s" %
                                  (self._name, str(ex)), cause=ex) from ex
        return result.deleted_count > 0
