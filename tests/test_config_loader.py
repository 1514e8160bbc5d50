import os
import tempfile
import unittest
from pathlib import Path

from termgate.config import Config, ConfigDocumentError, ConfigLoadRequest, YamlConfigLoader


class LoaderTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp_dir = Path(self._tmp.name)
        self.missing_path = str(self.tmp_dir / "missing.yml")

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def write(self, name: str, text: str) -> str:
        path = self.tmp_dir / name
        path.write_text(text, encoding="utf-8")
        return str(path)

    def load(self, environ, yaml_path=None, dotenv_path=None, config=None) -> Config:
        request = ConfigLoadRequest(yaml_path=yaml_path or self.missing_path, dotenv_path=dotenv_path)
        return YamlConfigLoader(environ=environ).load(request, config)


class PrecedenceTests(LoaderTestCase):
    def test_defaults_when_no_overrides(self) -> None:
        config = self.load({})
        self.assertEqual(config.sshd_port, "2222")

    def test_environment_overrides_default(self) -> None:
        config = self.load({"SSHD_PORT": "2223"})
        self.assertEqual(config.sshd_port, "2223")

    def test_file_overrides_environment(self) -> None:
        path = self.write("config.yml", "SSHD_PORT: 2224\n")
        config = self.load({"SSHD_PORT": "2223"}, yaml_path=path)
        self.assertEqual(config.sshd_port, "2224")

    def test_file_only_touches_present_keys(self) -> None:
        path = self.write("config.yml", "CORE_HOST: http://core:8080\n")
        config = self.load({"BIND_HOST": "127.0.0.1"}, yaml_path=path)
        self.assertEqual(config.core_host, "http://core:8080")
        self.assertEqual(config.bind_host, "127.0.0.1")
        self.assertEqual(config.httpd_port, "5000")

    def test_load_mutates_given_config(self) -> None:
        config = Config()
        result = self.load({"REDIS_HOST": "redis"}, config=config)
        self.assertIs(result, config)
        self.assertEqual(config.redis_host, "redis")

    def test_unknown_keys_are_ignored(self) -> None:
        path = self.write("config.yml", "NOT_A_KEY: 1\nLOG_LEVEL: DEBUG\n")
        config = self.load({"PATH": "/usr/bin", "HOME": "/root"}, yaml_path=path)
        self.assertEqual(config.log_level, "DEBUG")

    def test_environment_coerces_generic_numeric_fields(self) -> None:
        config = self.load({"RETRY_ALIVE_COUNT_MAX": "5", "CLIENT_ALIVE_INTERVAL": "60"})
        self.assertEqual(config.retry_alive_count_max, 5)
        self.assertEqual(config.client_alive_interval, 60)

    def test_null_values_in_file_are_ignored(self) -> None:
        path = self.write("config.yml", "ACCESS_KEY:\nBIND_HOST: 10.0.0.1\n")
        config = self.load({"ACCESS_KEY": "ak"}, yaml_path=path)
        self.assertEqual(config.access_key, "ak")
        self.assertEqual(config.bind_host, "10.0.0.1")

    def test_empty_file_is_noop(self) -> None:
        path = self.write("config.yml", "")
        config = self.load({"BIND_HOST": "127.0.0.1"}, yaml_path=path)
        self.assertEqual(config.bind_host, "127.0.0.1")

    def test_empty_language_code_falls_back(self) -> None:
        path = self.write("config.yml", "LANGUAGE_CODE: ''\n")
        config = self.load({}, yaml_path=path)
        self.assertEqual(config.language_code, "zh")


class TypedEnvironmentTests(LoaderTestCase):
    def test_flag_keys(self) -> None:
        config = self.load(
            {
                "SFTP_SHOW_HIDDEN_FILE": "True",
                "REUSE_CONNECTION": "off",
                "UPLOAD_FAILED_REPLAY_ON_START": "FALSE",
            }
        )
        self.assertTrue(config.show_hidden_file)
        self.assertFalse(config.reuse_connection)
        self.assertFalse(config.upload_failed_replay)

    def test_unrecognized_flag_value_keeps_prior_value(self) -> None:
        config = Config()
        config.show_hidden_file = True
        self.load({"SFTP_SHOW_HIDDEN_FILE": "maybe"}, config=config)
        self.assertTrue(config.show_hidden_file)

    def test_ssh_timeout(self) -> None:
        self.assertEqual(self.load({"SSH_TIMEOUT": "30"}).ssh_timeout, 30)
        self.assertEqual(self.load({"SSH_TIMEOUT": "thirty"}).ssh_timeout, 15)

    def test_redis_db_index(self) -> None:
        self.assertEqual(self.load({"REDIS_DB_ROOM": "4"}).redis_db_index, 4)
        self.assertEqual(self.load({"REDIS_DB_ROOM": "-4"}).redis_db_index, 0)
        self.assertEqual(self.load({"REDIS_DB_ROOM": "four"}).redis_db_index, 0)

    def test_redis_clusters(self) -> None:
        config = self.load({"REDIS_CLUSTERS": "a,b,c"})
        self.assertEqual(config.redis_clusters, ["a", "b", "c"])

    def test_file_overrides_typed_environment_key(self) -> None:
        path = self.write("config.yml", "SFTP_SHOW_HIDDEN_FILE: false\nREDIS_CLUSTERS: [x, y]\n")
        config = self.load({"SFTP_SHOW_HIDDEN_FILE": "on", "REDIS_CLUSTERS": "a,b"}, yaml_path=path)
        self.assertFalse(config.show_hidden_file)
        self.assertEqual(config.redis_clusters, ["x", "y"])


class DotenvTests(LoaderTestCase):
    def test_dotenv_is_layered_below_environment(self) -> None:
        dotenv_path = self.write(".env", "BIND_HOST=10.1.1.1\nHTTPD_PORT=8000\n")
        config = self.load({"HTTPD_PORT": "9000"}, dotenv_path=dotenv_path)
        self.assertEqual(config.bind_host, "10.1.1.1")
        self.assertEqual(config.httpd_port, "9000")

    def test_missing_dotenv_is_ignored(self) -> None:
        config = self.load({}, dotenv_path=str(self.tmp_dir / "absent.env"))
        self.assertEqual(config.bind_host, "0.0.0.0")


class LoaderErrorTests(LoaderTestCase):
    def test_missing_file_keeps_environment_overrides(self) -> None:
        config = self.load({"CORE_HOST": "http://core", "REUSE_CONNECTION": "false"})
        self.assertFalse(os.path.exists(self.missing_path))
        self.assertEqual(config.core_host, "http://core")
        self.assertFalse(config.reuse_connection)

    def test_directory_path_is_treated_as_absent(self) -> None:
        config = self.load({"CORE_HOST": "http://core"}, yaml_path=str(self.tmp_dir))
        self.assertEqual(config.core_host, "http://core")

    def test_malformed_yaml_raises_and_keeps_environment(self) -> None:
        path = self.write("config.yml", "SSHD_PORT: [unclosed\n")
        config = Config()
        with self.assertRaises(ConfigDocumentError) as ctx:
            self.load({"HTTPD_PORT": "8081"}, yaml_path=path, config=config)
        self.assertEqual(ctx.exception.source, path)
        self.assertEqual(config.httpd_port, "8081")
        self.assertEqual(config.sshd_port, "2222")

    def test_non_mapping_document_raises(self) -> None:
        path = self.write("config.yml", "- a\n- b\n")
        with self.assertRaises(ConfigDocumentError):
            self.load({}, yaml_path=path)

    def test_type_mismatch_applies_valid_keys(self) -> None:
        path = self.write("config.yml", "BIND_HOST: 10.0.0.9\nSSH_TIMEOUT: soon\n")
        config = Config()
        with self.assertRaises(ConfigDocumentError) as ctx:
            self.load({}, yaml_path=path, config=config)
        self.assertEqual(ctx.exception.invalid_keys, ("SSH_TIMEOUT",))
        self.assertEqual(config.bind_host, "10.0.0.9")
        self.assertEqual(config.ssh_timeout, 15)

    def test_invalid_environment_document_still_applies_file(self) -> None:
        path = self.write("config.yml", "BIND_HOST: 10.0.0.9\n")
        config = Config()
        with self.assertRaises(ConfigDocumentError) as ctx:
            self.load(
                {"CLIENT_ALIVE_INTERVAL": "often", "SSH_TIMEOUT": "20", "CORE_HOST": "http://core"},
                yaml_path=path,
                config=config,
            )
        self.assertEqual(ctx.exception.source, "<environment>")
        self.assertEqual(ctx.exception.invalid_keys, ("CLIENT_ALIVE_INTERVAL",))
        self.assertEqual(config.ssh_timeout, 20)
        self.assertEqual(config.core_host, "http://core")
        self.assertEqual(config.bind_host, "10.0.0.9")
        self.assertEqual(config.client_alive_interval, 30)


class FileScalarTests(LoaderTestCase):
    def test_string_fields_keep_scalar_text(self) -> None:
        path = self.write(
            "config.yml",
            "REDIS_PASSWORD: 0123456\nBOOTSTRAP_TOKEN: 12:30\nACCESS_KEY: yes\nZIP_MAX_SIZE: 1_024\nSSHD_PORT: 0x10\n",
        )
        config = self.load({}, yaml_path=path)
        self.assertEqual(config.redis_password, "0123456")
        self.assertEqual(config.bootstrap_token, "12:30")
        self.assertEqual(config.access_key, "yes")
        self.assertEqual(config.zip_max_size, "1_024")
        self.assertEqual(config.sshd_port, "0x10")

    def test_typed_fields_are_coerced_from_text(self) -> None:
        path = self.write(
            "config.yml",
            "SSH_TIMEOUT: 30\nREUSE_CONNECTION: off\nUPLOAD_FAILED_REPLAY_ON_START: 'false'\nREDIS_DB_ROOM: 2\n",
        )
        config = self.load({}, yaml_path=path)
        self.assertEqual(config.ssh_timeout, 30)
        self.assertFalse(config.reuse_connection)
        self.assertFalse(config.upload_failed_replay)
        self.assertEqual(config.redis_db_index, 2)

    def test_environment_values_keep_their_text(self) -> None:
        config = self.load({"REDIS_PASSWORD": "0123456", "ACCESS_KEY": "null", "BIND_HOST": ""})
        self.assertEqual(config.redis_password, "0123456")
        self.assertEqual(config.access_key, "null")
        self.assertEqual(config.bind_host, "")


if __name__ == "__main__":
    unittest.main()
