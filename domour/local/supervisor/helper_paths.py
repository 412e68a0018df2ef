import os
import logging
from pathlib import Path
from dataclasses import dataclass
from typing import Optional, Tuple

from domour.local.config import effective_settings as config
from domour.local.update.platforms import HostPlatform, InstallMethod, current_platform

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class HelperConfig:
    """The helper's configuration file and its current text."""
    path: Path
    content: str


def helper_binary_path(platform: Optional[HostPlatform] = None) -> Path:
    """
    Returns where the helper binary is installed on this platform.

    System-wide `/usr/local/bin/vlink` for elevated installs, the user's
    `~/.vlink/vlink.exe` for Windows.
    """
    platform = platform or current_platform()
    if platform.install_method is InstallMethod.USER_RENAME:
        return config.HELPER_WINDOWS_BINARY_PATH
    return config.HELPER_SYSTEM_BINARY_PATH


def _config_exists(path: Path) -> bool:
    return path.is_file()


def _write_private(path: Path, content: str) -> None:
    """Writes `content` to a file that is created with owner-only permissions."""
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "w") as f:
        f.write(content)
    # An existing file keeps its old mode on open.
    os.chmod(path, 0o600)


def ensure_home_config(home_config: Optional[Path] = None) -> Tuple[Path, bool]:
    """
    Makes sure the per-user helper config exists.

    :param home_config: Override for `~/.vlink/config.json`.
    :return: (path, created) where `created` is True if the default was just written.
    """
    home_config = Path(home_config or config.HELPER_HOME_CONFIG_PATH)
    if _config_exists(home_config):
        return home_config, False

    home_config.parent.mkdir(parents=True, exist_ok=True)
    _write_private(home_config, config.HELPER_DEFAULT_CONFIG)
    log.warning(f"No vlink configuration found. Created default config at '{home_config}'.")
    return home_config, True


def resolve_config_path(
    platform: Optional[HostPlatform] = None,
    home_config: Optional[Path] = None,
    system_config: Optional[Path] = None,
) -> Tuple[Path, bool]:
    """
    Picks the config file the helper is started with.

    Order: the user's home config, then (outside Windows) the system config,
    and finally a freshly created home config.

    :return: (path, created) as returned by `ensure_home_config`.
    """
    platform = platform or current_platform()
    home_config = Path(home_config or config.HELPER_HOME_CONFIG_PATH)
    if _config_exists(home_config):
        return home_config, False

    if not platform.is_windows:
        system_config = Path(system_config or config.HELPER_SYSTEM_CONFIG_PATH)
        if _config_exists(system_config):
            log.debug(f"Using system-wide vlink config at '{system_config}'.")
            return system_config, False

    return ensure_home_config(home_config)


def read_config(home_config: Optional[Path] = None) -> HelperConfig:
    """Returns the user's helper config, creating the default one if needed."""
    path, _ = ensure_home_config(home_config)
    return HelperConfig(path=path, content=path.read_text())


def save_config(content: str, home_config: Optional[Path] = None) -> Path:
    """Overwrites the user's helper config with `content`."""
    path, _ = ensure_home_config(home_config)
    _write_private(path, content)
    log.info(f"vlink config saved to '{path}'.")
    return path
