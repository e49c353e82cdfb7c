import os
import unittest
from pathlib import Path
from tempfile import TemporaryDirectory
from unittest.mock import patch

from meridian.environment import (
    DEFAULT_BLUUM_BASE_URL,
    get_bluum_base_url,
    get_bluum_credentials,
    get_http_timeout,
    get_log_format,
    get_log_level,
    get_server_address,
    load_dotenv,
)


class EnvironmentTests(unittest.TestCase):
    def test_load_dotenv_sets_missing_values(self) -> None:
        with TemporaryDirectory() as tmp, patch.dict(os.environ, {}, clear=True):
            env_path = Path(tmp) / ".env"
            env_path.write_text("FOO=bar\nBLUUM_API_KEY='abc'\n# comment\nnot a pair\n")
            load_dotenv(env_path)
            self.assertEqual(os.environ["FOO"], "bar")
            self.assertEqual(os.environ["BLUUM_API_KEY"], "abc")

    def test_load_dotenv_does_not_override_existing(self) -> None:
        with TemporaryDirectory() as tmp, patch.dict(
            os.environ, {"FOO": "initial"}, clear=True
        ):
            env_path = Path(tmp) / ".env"
            env_path.write_text("FOO=bar\nBAR=baz\n")
            load_dotenv(env_path)
            self.assertEqual(os.environ["FOO"], "initial")
            self.assertEqual(os.environ["BAR"], "baz")

    def test_credentials_report_missing_names(self) -> None:
        with patch.dict(os.environ, {"BLUUM_API_KEY": "key"}, clear=True):
            with self.assertRaises(RuntimeError) as ctx:
                get_bluum_credentials()
        self.assertIn("BLUUM_SECRET_KEY", str(ctx.exception))
        self.assertNotIn("BLUUM_API_KEY", str(ctx.exception))

    def test_credentials_returned_when_present(self) -> None:
        env = {"BLUUM_API_KEY": "key", "BLUUM_SECRET_KEY": "secret"}
        with patch.dict(os.environ, env, clear=True):
            self.assertEqual(get_bluum_credentials(), ("key", "secret"))

    def test_base_url_default_and_trailing_slash(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            self.assertEqual(get_bluum_base_url(), DEFAULT_BLUUM_BASE_URL)
        with patch.dict(os.environ, {"BLUUM_API_BASE_URL": "https://api.example.com/v1/"}, clear=True):
            self.assertEqual(get_bluum_base_url(), "https://api.example.com/v1")

    def test_http_timeout(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            self.assertEqual(get_http_timeout(), 30.0)
        with patch.dict(os.environ, {"MERIDIAN_HTTP_TIMEOUT": "5"}, clear=True):
            self.assertEqual(get_http_timeout(), 5.0)
        for bad in ("soon", "0", "-1"):
            with patch.dict(os.environ, {"MERIDIAN_HTTP_TIMEOUT": bad}, clear=True):
                with self.assertRaises(ValueError):
                    get_http_timeout()

    def test_log_settings(self) -> None:
        with patch.dict(os.environ, {"MERIDIAN_LOG_LEVEL": "debug"}, clear=True):
            self.assertEqual(get_log_level(), "DEBUG")
            self.assertEqual(get_log_format(), "console")
        with patch.dict(os.environ, {"MERIDIAN_LOG_FORMAT": "xml"}, clear=True):
            with self.assertRaises(ValueError):
                get_log_format()

    def test_server_address(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            self.assertEqual(get_server_address(), ("127.0.0.1", 8000))
        with patch.dict(os.environ, {"MERIDIAN_HOST": "0.0.0.0", "MERIDIAN_PORT": "9000"}, clear=True):
            self.assertEqual(get_server_address(), ("0.0.0.0", 9000))
        with patch.dict(os.environ, {"MERIDIAN_PORT": "http"}, clear=True):
            with self.assertRaises(ValueError):
                get_server_address()


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
