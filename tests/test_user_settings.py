import json
import stat
import sys
from dataclasses import replace
from pathlib import Path

import pytest

from domour.local.config import effective_settings as config
from domour.local import user_settings
from domour.local.user_settings import AppSettings, UserSettingsStore


def test_first_load_writes_defaults() -> None:
    store = UserSettingsStore()

    settings = store.load()

    assert settings == AppSettings()
    on_disk = json.loads(config.USER_SETTINGS_PATH.read_text())
    assert on_disk["displayName"] == "Domour Copilot"
    assert on_disk["vlinkAutoStart"] is False
    assert stat.S_IMODE(config.USER_SETTINGS_PATH.stat().st_mode) == 0o600


def test_unreadable_file_falls_back_to_defaults(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    path.write_text("{not json")

    assert UserSettingsStore(path).load() == AppSettings()
    assert json.loads(path.read_text()) == AppSettings().to_dict()


def test_unknown_keys_are_ignored_and_missing_ones_defaulted(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"displayName": "Desk", "legacyFlag": 1}))

    settings = UserSettingsStore(path).load()

    assert settings.displayName == "Desk"
    assert settings.autoUpdate is True


def test_save_round_trips_through_disk(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    store = UserSettingsStore(path)
    store.load()

    changed = replace(store.get(), vlinkAutoStart=True, notes="remember the milk")
    assert store.save(changed) == "settings saved"

    assert store.get() == changed
    assert UserSettingsStore(path).load() == changed


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX permission bits")
def test_settings_file_is_created_private(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(user_settings.os, "chmod", lambda *args, **kwargs: None)
    path = tmp_path / "settings.json"

    UserSettingsStore(path).load()

    assert stat.S_IMODE(path.stat().st_mode) == 0o600
