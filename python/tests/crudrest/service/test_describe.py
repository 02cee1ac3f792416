import os, pdb, logging, tempfile
import unittest as test

from crudrest.service import describe as desc
from crudrest.service.routing import Router, ReverseRouter
from crudrest.table import InMemoryTable, Schema, Column, Validator, Associations, Association

tmpdir = tempfile.TemporaryDirectory(prefix="_test_describe.")
loghdlr = None
rootlog = None
def setUpModule():
    global loghdlr
    global rootlog
    rootlog = logging.getLogger()
    loghdlr = logging.FileHandler(os.path.join(tmpdir.name,"test_describe.log"))
    loghdlr.setLevel(logging.DEBUG)
    rootlog.addHandler(loghdlr)

def tearDownModule():
    global loghdlr
    if loghdlr:
        if rootlog:
            rootlog.removeHandler(loghdlr)
        loghdlr.flush()
        loghdlr.close()
        loghdlr = None
    tmpdir.cleanup()

def make_table():
    schema = Schema([Column("id", "integer"), Column("title", length=255),
                     Column("author_id", "integer"), Column("published_date", "date")])
    val = Validator()
    val.require_presence("title", "create").allow_empty("title", False)
    val.add("title", "minLength", params=[3], message="too short", last=True)
    val.add("title", "custom", lambda v, ctx: True, message="not custom")
    val.add("title", "dynamic", "maxLength", lambda ctx: [10])
    val.add("author_id", "naturalNumber", on="update")
    assocs = Associations([Association("BelongsTo", "Authors", "authors"),
                           Association("HasMany", "Comments", "comments"),
                           Association("HasMany", "Tags", "tags")])
    return InMemoryTable("articles", schema=schema, validator=val, associations=assocs,
                         hidden=["secret"])

class TestLabels(test.TestCase):

    def test_humanize(self):
        self.assertEqual(desc.humanize("title"), "Title")
        self.assertEqual(desc.humanize("published_date"), "Published Date")
        self.assertEqual(desc.humanize("userID"), "UserID")
        self.assertEqual(desc.make_label("parentOrg_id"), "ParentOrg")

    def test_make_label(self):
        self.assertEqual(desc.make_label("author_id"), "Author")
        self.assertEqual(desc.make_label("blog_post_id"), "Blog Post")
        self.assertEqual(desc.make_label("id"), "Id")
        self.assertEqual(desc.make_label("identity"), "Identity")
        self.assertEqual(desc.make_label("id_card"), "Id Card")

class TestDescribe(test.TestCase):

    def setUp(self):
        self.tbl = make_table()
        self.router = Router("/api")
        self.router.connect("articles")
        self.rr = ReverseRouter(self.router, "articles")

    def test_document(self):
        doc = desc.describe_table(self.tbl, self.rr)
        self.assertEqual(list(doc.keys()),
                         ["entity", "schema", "validators", "relations", "actions"])
        self.assertEqual(doc['entity'], {"hidden": ["secret"]})

        self.assertEqual(list(doc['schema']['columns'].keys()),
                         ["id", "title", "author_id", "published_date"])
        self.assertEqual(doc['schema']['columns']['title']['length'], 255)
        self.assertEqual(doc['schema']['labels'], {"id": "Id", "title": "Title",
                                                   "author_id": "Author",
                                                   "published_date": "Published Date"})

    def test_validators(self):
        doc = desc.describe_table(self.tbl, self.rr)
        title = doc['validators']['title']
        self.assertEqual(title['validatePresence'], "create")
        self.assertFalse(title['emptyAllowed'])
        self.assertEqual(list(title['rules'].keys()), ["minLength", "custom", "dynamic"])
        self.assertEqual(title['rules']['minLength'],
                         {"message": "too short", "on": None, "rule": "minLength",
                          "params": [3], "last": True})

        # callables are never described
        self.assertIsNone(title['rules']['custom']['rule'])
        self.assertIsNone(title['rules']['custom']['params'])
        self.assertEqual(title['rules']['custom']['message'], "not custom")
        self.assertIsNone(title['rules']['dynamic']['rule'])
        self.assertIsNone(title['rules']['dynamic']['params'])

        author = doc['validators']['author_id']
        self.assertFalse(author['validatePresence'])
        self.assertTrue(author['emptyAllowed'])
        self.assertEqual(author['rules']['naturalNumber']['on'], "update")

    def test_relations(self):
        doc = desc.describe_table(self.tbl, self.rr)
        self.assertEqual(list(doc['relations'].keys()),
                         ["BelongsTo", "HasOne", "HasMany", "BelongsToMany"])
        self.assertEqual(doc['relations'], {"BelongsTo": ["authors"], "HasOne": [],
                                            "HasMany": ["comments", "tags"],
                                            "BelongsToMany": []})

    def test_actions(self):
        doc = desc.describe_table(self.tbl, self.rr)
        self.assertEqual(doc['actions'], {
            "index":  {"name": "self",   "href": "/api/articles",      "method": "GET"},
            "add":    {"name": "add",    "href": "/api/articles",      "method": "POST"},
            "edit":   {"name": "edit",   "href": "/api/articles/{id}", "method": "PUT"},
            "delete": {"name": "delete", "href": "/api/articles/{id}", "method": "DELETE"}
        })

    def test_nested_actions(self):
        self.router.connect("comments", "articles/{parent_id}/comments")
        rr = ReverseRouter(self.router, "comments")
        doc = desc.describe_table(self.tbl, rr, parent_id=3)
        self.assertEqual(doc['actions']['edit']['href'], "/api/articles/3/comments/{id}")

        doc = desc.describe_table(self.tbl, rr)
        self.assertEqual(doc['actions']['index']['href'], "/api/articles/{parent_id}/comments")

    def test_unresolvable_links_omitted(self):
        self.router.connect("articles", methods=["GET", "PUT"])
        doc = desc.describe_table(self.tbl, self.rr)
        self.assertEqual(list(doc['actions'].keys()), ["index", "edit"])
        self.assertEqual(len(doc['relations']), 4)

        doc = desc.describe_table(self.tbl, ReverseRouter(self.router, "goober"))
        self.assertEqual(doc['actions'], {})
        self.assertEqual(len(doc['schema']['labels']), 4)

    def test_idempotent(self):
        self.assertEqual(desc.describe_table(self.tbl, self.rr),
                         desc.describe_table(self.tbl, self.rr))

    def test_empty_table(self):
        doc = desc.describe_table(InMemoryTable("notes"))
        self.assertEqual(doc['entity'], {"hidden": []})
        self.assertEqual(doc['schema'], {"columns": {}, "labels": {}})
        self.assertEqual(doc['validators'], {})
        self.assertEqual(doc['relations'], {"BelongsTo": [], "HasOne": [], "HasMany": [],
                                            "BelongsToMany": []})
        self.assertEqual(doc['actions'], {})

if __name__ == '__main__':
    test.main()
