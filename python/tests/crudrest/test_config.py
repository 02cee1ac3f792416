import os, json, pdb, logging, tempfile
from pathlib import Path
import unittest as test

import yaml

from crudrest import config, CrudRestException

tmpdir = tempfile.TemporaryDirectory(prefix="_test_config.")

class TestLoadConfig(test.TestCase):

    def setUp(self):
        self.tdir = Path(tmpdir.name)

    def tearDown(self):
        for f in self.tdir.iterdir():
            f.unlink()

    def test_load_json(self):
        cfgfile = self.tdir / "conf.json"
        with open(cfgfile, 'w') as fd:
            json.dump({"renderer": "xml", "tables": [{"name": "articles"}]}, fd)
        cfg = config.load_from_file(str(cfgfile))
        self.assertEqual(cfg['renderer'], "xml")
        self.assertEqual(cfg['tables'][0]['name'], "articles")

    def test_load_yaml(self):
        cfgfile = self.tdir / "conf.yml"
        with open(cfgfile, 'w') as fd:
            yaml.safe_dump({"base_ep": "/api", "debug": True}, fd)
        cfg = config.load_from_file(str(cfgfile))
        self.assertEqual(cfg, {"base_ep": "/api", "debug": True})

    def test_load_bad(self):
        cfgfile = self.tdir / "conf.json"
        with open(cfgfile, 'w') as fd:
            fd.write("{ not json")
        with self.assertRaises(config.ConfigurationException):
            config.load_from_file(str(cfgfile))

        cfgfile = self.tdir / "list.yaml"
        with open(cfgfile, 'w') as fd:
            fd.write("- a\n- b\n")
        with self.assertRaises(config.ConfigurationException):
            config.load_from_file(str(cfgfile))

    def test_resolve(self):
        data = {"a": {"b": 1}}
        cfg = config.resolve_configuration(data)
        self.assertEqual(cfg, data)
        cfg['a']['b'] = 2
        self.assertEqual(data['a']['b'], 1)

        with self.assertRaises(config.ConfigurationException):
            config.resolve_configuration(str(self.tdir / "goob.json"))
        with self.assertRaises(config.ConfigurationException):
            config.resolve_configuration(3)

        self.assertTrue(issubclass(config.ConfigurationException, CrudRestException))

class TestMergeConfig(test.TestCase):

    def test_merge(self):
        defs = {"factory": "inmem", "opts": {"a": 1, "b": 2}, "list": [1, 2]}
        prim = {"opts": {"b": 3, "c": 4}, "list": [5], "name": "x"}
        out = config.merge_config(prim, defs)
        self.assertEqual(out, {"factory": "inmem", "opts": {"a": 1, "b": 3, "c": 4},
                               "list": [5], "name": "x"})
        self.assertEqual(defs['opts'], {"a": 1, "b": 2})

        self.assertEqual(config.merge_config({"a": 1}, None), {"a": 1})
        self.assertEqual(config.merge_config(None, {"a": 1}), {"a": 1})

class TestConfigureLog(test.TestCase):

    def tearDown(self):
        log = logging.getLogger("crudrest")
        if config._log_handler:
            log.removeHandler(config._log_handler)
            config._log_handler.close()
            config._log_handler = None
        for f in Path(tmpdir.name).iterdir():
            f.unlink()

    def test_configure_log(self):
        cfg = {"logdir": tmpdir.name, "logfile": "test.log", "loglevel": "DEBUG"}
        log = config.configure_log(config=cfg)
        self.assertEqual(log.name, "crudrest")
        self.assertEqual(log.level, logging.DEBUG)
        self.assertEqual(config.global_logfile, os.path.join(tmpdir.name, "test.log"))

        log.getChild("test").info("hello")
        config._log_handler.flush()
        with open(config.global_logfile) as fd:
            self.assertIn("hello", fd.read())

    def test_bad_level(self):
        with self.assertRaises(config.ConfigurationException):
            config.configure_log(config={"loglevel": "goober"})

def tearDownModule():
    tmpdir.cleanup()

if __name__ == '__main__':
    test.main()
