import os
import tempfile
import unittest
from pathlib import Path

from sftpctl.core import settings
from sftpctl.core.errors import ConfigError, ValidationError

from tests.fakes import ScriptedPrompter


class SettingsTestCase(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)

    def tearDown(self):
        self._tmp.cleanup()

    def write_yaml(self, text):
        path = self.tmp / "config.yaml"
        path.write_text(text, encoding="utf-8")
        return path


class TestFileDefaults(SettingsTestCase):
    def test_missing_file_is_empty(self):
        self.assertEqual(settings.load_file_defaults(self.tmp / "nope.yaml"), {})

    def test_reads_known_keys(self):
        path = self.write_yaml("base_dir: /srv/sftp\ngroup: clientes\n")
        self.assertEqual(
            settings.load_file_defaults(path),
            {"base_dir": "/srv/sftp", "group": "clientes"},
        )

    def test_unknown_key_is_config_error(self):
        path = self.write_yaml("basedir: /srv/sftp\n")
        with self.assertRaises(ConfigError):
            settings.load_file_defaults(path)

    def test_invalid_yaml_is_config_error(self):
        path = self.write_yaml("base_dir: [unclosed\n")
        with self.assertRaises(ConfigError):
            settings.load_file_defaults(path)

    def test_non_mapping_is_config_error(self):
        path = self.write_yaml("- a\n- b\n")
        with self.assertRaises(ConfigError):
            settings.load_file_defaults(path)


class TestEnvironmentDefaults(SettingsTestCase):
    def test_env_vars_override_file(self):
        path = self.write_yaml("base_dir: /from/file\nupload_dir: files\n")
        environ = {"SFTPCTL_BASE_DIR": "/from/env", "SFTPCTL_GROUP": "clientes"}
        values = settings.environment_defaults(environ, config_file=path)
        self.assertEqual(values["base_dir"], "/from/env")
        self.assertEqual(values["upload_dir"], "files")
        self.assertEqual(values["group"], "clientes")

    def test_folder_has_no_environment_default(self):
        values = settings.environment_defaults({"SFTPCTL_FOLDER": "shared"}, config_file=self.tmp / "none.yaml")
        self.assertNotIn("folder", values)

    def test_folder_in_file_is_config_error(self):
        path = self.write_yaml("folder: shared\n")
        with self.assertRaises(ConfigError):
            settings.load_file_defaults(path)

    def test_config_path_from_env(self):
        path = self.write_yaml("mode: user\n")
        values = settings.environment_defaults({"SFTPCTL_CONFIG": str(path)})
        self.assertEqual(values, {"mode": "user"})

    def test_default_config_path(self):
        self.assertEqual(settings.get_config_file_path({}), settings.DEFAULT_CONFIG_FILE)

    def test_env_file_does_not_override_real_environment(self):
        env_file = self.tmp / "sftpctl.env"
        env_file.write_text("SFTPCTL_TEST_ONLY=from-file\nSFTPCTL_TEST_KEEP=from-file\n", encoding="utf-8")
        os.environ["SFTPCTL_TEST_KEEP"] = "real"
        try:
            loaded = settings.load_env_file({"SFTPCTL_ENV_FILE": str(env_file)})
            self.assertEqual(loaded, env_file)
            self.assertEqual(os.environ["SFTPCTL_TEST_ONLY"], "from-file")
            self.assertEqual(os.environ["SFTPCTL_TEST_KEEP"], "real")
        finally:
            os.environ.pop("SFTPCTL_TEST_ONLY", None)
            os.environ.pop("SFTPCTL_TEST_KEEP", None)

    def test_missing_env_file(self):
        self.assertIsNone(settings.load_env_file({"SFTPCTL_ENV_FILE": str(self.tmp / "none.env")}))


class TestSettingResolver(unittest.TestCase):
    def test_explicit_wins_over_env_and_prompt(self):
        prompter = ScriptedPrompter(answers=["/from/prompt"])
        resolver = settings.SettingResolver({"base_dir": "/explicit"}, {"base_dir": "/env"}, prompter)
        self.assertEqual(resolver.resolve("base_dir", "Directorio base"), "/explicit")
        self.assertEqual(prompter.asked, [])

    def test_env_default_then_fallback(self):
        prompter = ScriptedPrompter()
        resolver = settings.SettingResolver({}, {"group": "clientes"}, prompter)
        self.assertEqual(resolver.resolve("group", "Grupo"), "clientes")
        self.assertEqual(resolver.resolve("base_dir", "Directorio base"), "/sftp")
        self.assertEqual(resolver.resolve("folder", "Carpeta", fallback="john"), "john")
        self.assertIsNone(resolver.resolve("folder", "Carpeta"))
        self.assertEqual(prompter.asked, [])

    def test_interactive_answer_wins(self):
        prompter = ScriptedPrompter(answers=["/from/prompt"])
        resolver = settings.SettingResolver({"base_dir": "/explicit"}, {}, prompter, interactive=True)
        self.assertEqual(resolver.resolve("base_dir", "Directorio base"), "/from/prompt")

    def test_interactive_empty_answer_keeps_suggestion(self):
        prompter = ScriptedPrompter(answers=[""])
        resolver = settings.SettingResolver({}, {"base_dir": "/env"}, prompter, interactive=True)
        self.assertEqual(resolver.resolve("base_dir", "Directorio base"), "/env")

    def test_interactive_skip_when_ask_false(self):
        prompter = ScriptedPrompter(answers=["user"])
        resolver = settings.SettingResolver({}, {}, prompter, interactive=True)
        self.assertEqual(resolver.resolve("mode", "Modo", ask=False), "group")
        self.assertEqual(prompter.asked, [])

    def test_required_without_tty(self):
        prompter = ScriptedPrompter(enabled=False)
        resolver = settings.SettingResolver({}, {}, prompter)
        with self.assertRaises(ValidationError):
            resolver.resolve("folder", "Carpeta", required=True)

    def test_required_prompted_when_possible(self):
        prompter = ScriptedPrompter(answers=["datos"])
        resolver = settings.SettingResolver({}, {}, prompter)
        self.assertEqual(resolver.resolve("folder", "Carpeta", required=True), "datos")


if __name__ == "__main__":
    unittest.main()
