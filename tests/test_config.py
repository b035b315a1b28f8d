import sys
import os

import pytest
from pydantic import ValidationError

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

import config
from config import EngineSettings
from models import LockedAccountPolicy


class TestEngineSettings:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("PAYMENTS_NUM_WORKERS", raising=False)
        settings = EngineSettings(_env_file=None)

        assert settings.num_workers == 1
        assert settings.locked_account_policy == LockedAccountPolicy.ACCEPT
        assert settings.output_precision == 4
        assert settings.rounding == "ROUND_HALF_EVEN"
        assert settings.log_level == "WARNING"

    def test_from_environment(self, monkeypatch):
        monkeypatch.setenv("PAYMENTS_NUM_WORKERS", "4")
        monkeypatch.setenv("PAYMENTS_LOCKED_ACCOUNT_POLICY", "reject")
        monkeypatch.setenv("PAYMENTS_ROUNDING", "round_down")
        monkeypatch.setenv("PAYMENTS_LOG_LEVEL", "debug")

        settings = EngineSettings(_env_file=None)

        assert settings.num_workers == 4
        assert settings.locked_account_policy == LockedAccountPolicy.REJECT
        assert settings.rounding == "ROUND_DOWN"
        assert settings.log_level == "DEBUG"

    @pytest.mark.parametrize("kwargs", [
        {"num_workers": 0},
        {"output_precision": -1},
        {"rounding": "ROUND_SIDEWAYS"},
        {"log_level": "LOUD"},
        {"locked_account_policy": "maybe"},
    ])
    def test_invalid(self, kwargs):
        with pytest.raises(ValidationError):
            EngineSettings(_env_file=None, **kwargs)

    def test_reload(self, monkeypatch):
        monkeypatch.setenv("PAYMENTS_OUTPUT_PRECISION", "2")
        try:
            assert config.reload_settings().output_precision == 2
            assert config.get_settings().output_precision == 2
        finally:
            monkeypatch.delenv("PAYMENTS_OUTPUT_PRECISION")
            config.reload_settings()
