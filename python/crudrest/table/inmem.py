"""
An implementation of the Table interface based on a simple in-memory look-up.

This is provided primarily for testing and development purposes
"""
from copy import deepcopy
from collections import OrderedDict
from collections.abc import Mapping
from typing import List

from . import base

class InMemoryTable(base.Table):
    """
    an in-memory Table implementation.  Records are kept in insertion order in a dictionary
    keyed by their primary key values.
    """

    def __init__(self, name: str, records: List[Mapping]=None, **kw):
        """
        create the table.
        :param str     name:  the name of the table
        :param list records:  initial records to load into the table (unvalidated)
        :param kw:  other parameters accepted by :py:class:`~crudrest.table.base.Table`
        """
        super(InMemoryTable, self).__init__(name, **kw)
        self._recs = OrderedDict()
        self._nextnum = 0
        for rec in (records or []):
            self._insert(rec)

    def _keyof(self, data: Mapping) -> tuple:
        return tuple(data.get(k) for k in self._pk)

    def _matches(self, rec: Mapping, conds: Mapping) -> bool:
        for field, value in conds.items():
            if isinstance(value, (list, tuple, set)):
                if rec.get(field) not in value:
                    return False
            elif rec.get(field) != value:
                return False
        return True

    def _execute(self, query: base.Query) -> List[base.Entity]:
        hits = [r for r in self._recs.values() if self._matches(r, query.conditions)]
        for field, desc in reversed(query.ordering):
            # None sorts first
            hits.sort(key=lambda r: (r.get(field) is not None, r.get(field)), reverse=desc)
        if query.skip_count:
            hits = hits[query.skip_count:]
        if query.max_count is not None:
            hits = hits[:query.max_count]
        return [self._hydrate(deepcopy(r)) for r in hits]

    def _insert(self, data: Mapping) -> Mapping:
        assigned = {}
        data = deepcopy(dict(data))
        if self.generates_keys and data.get(self._pk[0]) is None:
            self._nextnum += 1
            data[self._pk[0]] = self._nextnum
            assigned[self._pk[0]] = self._nextnum
        elif self.generates_keys and isinstance(data.get(self._pk[0]), int):
            self._nextnum = max(self._nextnum, data[self._pk[0]])

        key = self._keyof(data)
        if any(k is None for k in key):
            raise base.RecordConflict("%s: new record is missing primary key value" % self._name,
                                      [k for k, v in zip(self._pk, key) if v is None])
        if key in self._recs:
            raise base.RecordConflict("%s: record with primary key %s already exists" %
                                      (self._name, str(list(key))), self._pk)
        self._recs[key] = data
        return assigned

    def _update(self, key: Mapping, data: Mapping) -> bool:
        key = tuple(key.values())
        if key not in self._recs:
            return False
        self._recs[key] = deepcopy(dict(data))
        return True

    def _remove(self, key: Mapping) -> bool:
        key = tuple(key.values())
        if key not in self._recs:
            return False
        del self._recs[key]
        return True

    def __len__(self):
        return len(self._recs)
