"""
Tests for the workflow settings loader and get_active_settings().
"""

from decimal import Decimal
from pathlib import Path

import pytest
import yaml

from contract_config import SETTINGS_ENV_VAR, get_active_settings
from contract_config.loader import compute_checksum, load_settings, parse_settings
from contract_kernel.domain.settings import DEFAULT_SETTINGS, WorkflowSettings


def _write_yaml(path: Path, data: dict) -> Path:
    path.write_text(yaml.safe_dump(data, allow_unicode=True), encoding="utf-8")
    return path


class TestParseSettings:

    def test_empty_dict_gives_defaults(self):
        settings = parse_settings({})

        assert settings.vat_rate == Decimal("0.10")
        assert settings.auto_skip_margin_threshold == Decimal("30")
        assert settings.system_comment_prefix == "[AUTO]"
        assert settings.admin_override_enabled is True
        assert dict(settings.role_aliases) == dict(DEFAULT_SETTINGS.role_aliases)

    def test_values_parsed_to_decimal(self):
        settings = parse_settings({
            "vat_rate": 0.08,
            "auto_skip_margin_threshold": "25.5",
        })

        assert settings.vat_rate == Decimal("0.08")
        assert settings.auto_skip_margin_threshold == Decimal("25.5")

    def test_overrides(self):
        settings = parse_settings({
            "expert_cost_keywords": ["tư vấn"],
            "role_aliases": {"KeToanTruong": "Accountant"},
            "system_comment_prefix": "[HỆ THỐNG]",
            "admin_override_enabled": False,
        })

        assert settings.expert_cost_keywords == ("tư vấn",)
        assert dict(settings.role_aliases) == {"KeToanTruong": "Accountant"}
        assert settings.system_comment_prefix == "[HỆ THỐNG]"
        assert settings.admin_override_enabled is False

    def test_unknown_key_rejected(self):
        with pytest.raises(ValueError, match="auto_skip_threshold"):
            parse_settings({"auto_skip_threshold": "30"})

    @pytest.mark.parametrize("value", ["-1", "abc", "NaN", "Infinity"])
    def test_invalid_threshold_rejected(self, value):
        with pytest.raises(ValueError, match="auto_skip_margin_threshold"):
            parse_settings({"auto_skip_margin_threshold": value})

    def test_alias_to_unknown_role_rejected(self):
        with pytest.raises(ValueError, match="Janitor"):
            parse_settings({"role_aliases": {"Cleaner": "Janitor"}})


class TestLoadSettings:

    def test_load_from_file(self, tmp_path):
        path = _write_yaml(tmp_path / "settings.yaml", {"auto_skip_margin_threshold": "40"})

        settings = load_settings(path)

        assert isinstance(settings, WorkflowSettings)
        assert settings.auto_skip_margin_threshold == Decimal("40")

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")

        assert load_settings(path) == parse_settings({})

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_settings(tmp_path / "missing.yaml")

    def test_packaged_default_matches_builtin_defaults(self, monkeypatch):
        monkeypatch.delenv(SETTINGS_ENV_VAR, raising=False)

        settings = get_active_settings()

        assert compute_checksum(settings) == compute_checksum(DEFAULT_SETTINGS)


class TestActiveSettings:

    def test_env_var_selects_file(self, tmp_path, monkeypatch, captured_logs):
        path = _write_yaml(tmp_path / "custom.yaml", {"auto_skip_margin_threshold": "35"})
        monkeypatch.setenv(SETTINGS_ENV_VAR, str(path))

        settings = get_active_settings()

        assert settings.auto_skip_margin_threshold == Decimal("35")
        [record] = [r for r in captured_logs() if r["message"] == "settings_loaded"]
        assert record["source"] == str(path)
        assert record["checksum"] == compute_checksum(settings)

    def test_explicit_path_wins(self, tmp_path, monkeypatch):
        env_path = _write_yaml(tmp_path / "env.yaml", {"auto_skip_margin_threshold": "35"})
        explicit = _write_yaml(tmp_path / "explicit.yaml", {"auto_skip_margin_threshold": "45"})
        monkeypatch.setenv(SETTINGS_ENV_VAR, str(env_path))

        settings = get_active_settings(explicit)

        assert settings.auto_skip_margin_threshold == Decimal("45")


class TestChecksum:

    def test_stable(self):
        assert compute_checksum(parse_settings({})) == compute_checksum(parse_settings({}))

    def test_changes_with_values(self):
        base = compute_checksum(parse_settings({}))
        changed = compute_checksum(parse_settings({"auto_skip_margin_threshold": "31"}))

        assert base != changed
