import pytest

from domour.local.config import effective_settings as config


@pytest.fixture(autouse=True)
def isolated_paths(tmp_path, monkeypatch):
    """Points every per-user and system path at a temporary directory."""
    home = tmp_path / "home"
    monkeypatch.setattr(config, "HELPER_HOME_CONFIG_PATH", home / ".vlink" / "config.json")
    monkeypatch.setattr(config, "HELPER_SYSTEM_CONFIG_PATH", tmp_path / "etc" / "vlink" / "config.json")
    monkeypatch.setattr(config, "HELPER_SYSTEM_BINARY_PATH", tmp_path / "usr" / "local" / "bin" / "vlink")
    monkeypatch.setattr(config, "HELPER_WINDOWS_BINARY_PATH", home / ".vlink" / "vlink.exe")
    monkeypatch.setattr(config, "USER_SETTINGS_PATH", home / ".domour" / "cosmos-assistant.json")
    monkeypatch.setattr(config, "OVERRIDES_JSON_PATH", home / ".domour" / "overrides.json")
    return home
