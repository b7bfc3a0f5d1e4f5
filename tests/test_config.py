"""
Tests for configuration loading.

Run: python -m pytest tests/test_config.py -v
"""

import os
from datetime import time

from shopfloor_oee.config import Config, load_env_file


class TestLoadEnvFile:

    def test_fills_unset_variables(self, tmp_path, monkeypatch):
        monkeypatch.delenv("SHOPFLOOR_TEST_VAR", raising=False)
        env = tmp_path / ".env"
        env.write_text("# comment\nSHOPFLOOR_TEST_VAR = from-file\n\nnot a pair\n")

        load_env_file(env)

        assert os.environ["SHOPFLOOR_TEST_VAR"] == "from-file"

    def test_does_not_override_environment(self, tmp_path, monkeypatch):
        monkeypatch.setenv("SHOPFLOOR_TEST_VAR", "from-env")
        env = tmp_path / ".env"
        env.write_text("SHOPFLOOR_TEST_VAR=from-file\n")

        load_env_file(env)

        assert os.environ["SHOPFLOOR_TEST_VAR"] == "from-env"

    def test_missing_file_is_ignored(self, tmp_path):
        load_env_file(tmp_path / "absent.env")


class TestConfig:

    def test_default_work_hours_follow_settings(self, monkeypatch):
        monkeypatch.setattr(Config, "WORK_HOURS_ENABLED", True)
        monkeypatch.setattr(Config, "SHIFT_START", "07:30")
        monkeypatch.setattr(Config, "SHIFT_END", "16:00")

        wh = Config.default_work_hours()

        assert wh.enabled
        assert (wh.start, wh.end) == (time(7, 30), time(16, 0))
