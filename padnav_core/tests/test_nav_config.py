from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from padnav_core import debug_config
from padnav_core.nav_config import NavigationSettings, apply_env_overrides, load_settings, settings_from_mapping


def test_load_settings_missing_file_returns_defaults(tmp_path: Path) -> None:
    settings = load_settings(tmp_path / "padnav_settings.json", env={})
    assert settings == NavigationSettings()


def test_load_settings_reads_and_coerces(tmp_path: Path) -> None:
    path = tmp_path / "padnav_settings.json"
    path.write_text(
        json.dumps(
            {
                "debounce_ms": "250",
                "poll_interval_ms": 20,
                "staleness_seconds": "bogus",
                "angle_penalty_degrees": 0,
                "max_correction_hops": 5,
                "allowed_roots": "MainWindow, Sidebar ,",
            }
        ),
        encoding="utf-8",
    )

    settings = load_settings(path, env={})

    assert settings.debounce_ms == 250
    assert settings.poll_interval_ms == 100
    assert settings.staleness_seconds == 30.0
    assert settings.angle_penalty_degrees == 1.0
    assert settings.max_correction_hops == 5
    assert settings.allowed_roots == ("MainWindow", "Sidebar")


def test_load_settings_invalid_json_logs_and_falls_back(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    path = tmp_path / "padnav_settings.json"
    path.write_text("{not json", encoding="utf-8")

    with caplog.at_level(logging.WARNING, logger="PadNav.Core.Config"):
        settings = load_settings(path, env={})

    assert settings == NavigationSettings()
    assert "Ignoring unreadable settings file" in caplog.text


def test_zero_poll_interval_disables_polling() -> None:
    assert settings_from_mapping({"poll_interval_ms": 0}).poll_interval_ms == 0
    assert settings_from_mapping({"debounce_ms": 1}).debounce_ms == 10


def test_env_overrides_take_precedence() -> None:
    base = settings_from_mapping({"debounce_ms": 300, "allowed_roots": ["Main"]})
    env = {"PADNAV_DEBOUNCE_MS": "50", "PADNAV_STALENESS_SECONDS": "2.5", "UNRELATED": "x"}

    settings = apply_env_overrides(base, env)

    assert settings.debounce_ms == 50
    assert settings.staleness_seconds == 2.5
    assert settings.poll_interval_ms == base.poll_interval_ms
    assert settings.allowed_roots == ("Main",)
    assert apply_env_overrides(base, {}) is base


@pytest.mark.parametrize(
    "value, expected",
    [("1", True), ("yes", True), (" ON ", True), ("0", False), ("off", False), ("maybe", False)],
)
def test_dev_mode_tokens(value: str, expected: bool) -> None:
    assert debug_config.is_dev_build(value) is expected


def test_dev_mode_reads_environment(monkeypatch) -> None:
    monkeypatch.setenv(debug_config.DEV_MODE_ENV_VAR, "true")
    assert debug_config.is_dev_build() is True
    monkeypatch.delenv(debug_config.DEV_MODE_ENV_VAR)
    assert debug_config.is_dev_build() is False
