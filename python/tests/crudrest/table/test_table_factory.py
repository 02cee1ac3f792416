import pdb
import unittest as test

from crudrest.table import (create_table, create_registry, InMemoryTable, AssociationType,
                            Schema, Column, Associations, Entity)
from crudrest.config import ConfigurationException

articles_cfg = {
    "name": "articles",
    "hidden": ["secret"],
    "columns": {
        "id": {"type": "integer", "null": False},
        "title": {"type": "string", "length": 255},
        "author_id": "integer"
    },
    "validation": {
        "title": {"required": True, "rules": {"minLength": {"params": [3]}}}
    },
    "associations": {
        "BelongsTo": ["authors"],
        "HasMany": [{"target": "comments", "name": "Remarks", "foreign_key": "article_id"}]
    },
    "records": [ {"id": 1, "title": "Hello"} ]
}

class TestCreateTable(test.TestCase):

    def test_inmem(self):
        tbl = create_table(articles_cfg)
        self.assertIsInstance(tbl, InMemoryTable)
        self.assertEqual(tbl.name, "articles")
        self.assertEqual(tbl.schema.columns(), ["id", "title", "author_id"])
        self.assertEqual(tbl.schema.column("title")['length'], 255)
        self.assertFalse(tbl.schema.column("id")['null'])
        self.assertEqual(tbl.schema.column("author_id")['type'], "integer")
        self.assertIsNone(tbl.schema.column("goober"))
        self.assertTrue(tbl.validator.has_field("title"))
        self.assertEqual(tbl.get(1)['title'], "Hello")
        self.assertEqual(tbl.new_entity().hidden, ["secret"])

        assocs = tbl.associations
        self.assertEqual(len(assocs), 2)
        self.assertEqual([a.target for a in assocs.of_type(AssociationType.BELONGS_TO)],
                         ["authors"])
        self.assertEqual(assocs.get("Authors").kind, AssociationType.BELONGS_TO)
        remarks = assocs.get("Remarks")
        self.assertEqual(remarks.target, "comments")
        self.assertEqual(remarks.foreign_key, "article_id")
        self.assertEqual(assocs.of_type("HasOne"), [])

    def test_bad_config(self):
        with self.assertRaises(ConfigurationException):
            create_table({"factory": "inmem"})
        with self.assertRaises(ConfigurationException):
            create_table(["articles"])
        with self.assertRaises(ConfigurationException):
            create_table({"name": "articles", "factory": "sql"})
        with self.assertRaises(ConfigurationException):
            create_table({"name": "articles", "factory": "mongo"})
        with self.assertRaises(ConfigurationException):
            create_table({"name": "articles", "associations": {"HasSome": ["x"]}})
        with self.assertRaises(ConfigurationException):
            create_table({"name": "articles", "associations": {"HasOne": [{"name": "X"}]}})

    def test_registry(self):
        reg = create_registry([{"name": "articles"}, {"name": "authors", "factory": "inmem"}],
                              {"factory": "inmem", "primary_key": "id"})
        self.assertEqual(reg.names(), ["articles", "authors"])
        self.assertEqual(reg.get("authors").primary_key, ["id"])

class TestEntity(test.TestCase):

    def test_entity(self):
        ent = Entity({"a": 1, "b": 2}, source="things", hidden=["b"])
        self.assertTrue(ent.is_new())
        self.assertEqual(ent.fields(), ["a", "b"])
        ent.set("c", 3)
        ent['d'] = 4
        self.assertEqual(ent.get("c"), 3)
        self.assertEqual(ent.get("z", 0), 0)
        self.assertEqual(list(ent.to_dict().keys()), ["a", "c", "d"])

        self.assertFalse(ent.has_errors())
        ent.add_error("a", "bad")
        ent.add_error("a", "worse")
        self.assertEqual(ent.errors, {"a": ["bad", "worse"]})
        errs = ent.errors
        errs['a'].append("mutated")
        self.assertEqual(len(ent.errors['a']), 2)

        self.assertEqual(ent, Entity({"a": 1, "b": 2, "c": 3, "d": 4}, source="things"))

if __name__ == '__main__':
    test.main()
