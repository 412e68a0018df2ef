"""
Writes downloaded binaries into place.

Both paths rely on `os.replace` being atomic on a single volume: a process
starting the binary sees either the old file or the new one, never a partial write.
"""

import os
import sys
import stat
import logging
import tempfile
import subprocess
from pathlib import Path
from typing import Optional

from domour.local.errors import ApplyFailure, ElevationRequired, RollbackFailure
from domour.local.update.platforms import HostPlatform, InstallMethod

log = logging.getLogger(__name__)

INSTALL_MODE = "0755"
SUDO_TIMEOUT = 60   # seconds


def current_executable() -> Path:
    """
    Returns the path of the running application binary.

    :raises ApplyFailure: When running from a Python interpreter instead of a frozen build.
    """
    if not getattr(sys, "frozen", False):
        raise ApplyFailure("You are running from Python interpreter; self-update is only available for packaged builds.")
    return Path(sys.executable).resolve()


def _write_file(path: Path, payload: bytes, mode: int) -> None:
    with open(path, "wb") as f:
        f.write(payload)
        f.flush()
        os.fsync(f.fileno())
    os.chmod(path, mode)


def replace_executable(target: Path, payload: bytes) -> None:
    """
    Swaps `target` for `payload`, restoring the original if the swap fails.

    The new binary is staged as `.<name>.new` beside the target, the target is
    moved to `.<name>.old` and the staged file takes its place. The old copy is
    deleted afterwards when the OS allows it (Windows keeps a running exe locked).

    :raises ApplyFailure: If the new binary could not be put in place; the
        original binary is back in place.
    :raises RollbackFailure: If the original binary could not be restored either.
    """
    target = Path(target)
    new_path = target.with_name(f".{target.name}.new")
    old_path = target.with_name(f".{target.name}.old")

    try:
        mode = stat.S_IMODE(target.stat().st_mode)
    except OSError:
        mode = 0o755

    try:
        _write_file(new_path, payload, mode)
    except OSError as e:
        new_path.unlink(missing_ok=True)
        raise ApplyFailure(f"failed to stage update at '{new_path}': {e}") from e

    try:
        old_path.unlink(missing_ok=True)
        os.replace(target, old_path)
    except OSError as e:
        new_path.unlink(missing_ok=True)
        raise ApplyFailure(f"failed to move current binary aside: {e}") from e

    try:
        os.replace(new_path, target)
    except OSError as e:
        log.error(f"Failed to move new binary into place, rolling back: {e}")
        try:
            os.replace(old_path, target)
        except OSError as rollback_error:
            raise RollbackFailure(
                f"update failed and rollback failed: {rollback_error} (original binary left at '{old_path}')"
            ) from rollback_error
        new_path.unlink(missing_ok=True)
        raise ApplyFailure(f"update failed: {e}") from e

    try:
        old_path.unlink()
    except OSError as e:
        log.debug(f"Keeping previous binary at '{old_path}': {e}")
    log.info(f"Replaced '{target}' with new binary ({len(payload)} bytes).")


def require_elevation(platform: HostPlatform, sudo_password: Optional[str]) -> str:
    """
    Checks that an elevated install has a credential.

    :return: The trimmed password ('' when no elevation is needed).
    :raises ElevationRequired: If the platform needs sudo and no password was given.
    """
    password = (sudo_password or "").strip()
    if platform.install_method is InstallMethod.ELEVATED_COPY and not password:
        raise ElevationRequired("sudo password is required")
    return password


def _write_temp(payload: bytes, directory: Optional[Path] = None) -> Path:
    fd, name = tempfile.mkstemp(prefix="vlink-", dir=str(directory) if directory else None)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(payload)
    except OSError:
        Path(name).unlink(missing_ok=True)
        raise
    return Path(name)


def _elevated_copy(payload: bytes, target: Path, password: str) -> None:
    try:
        tmp_path = _write_temp(payload)
    except OSError as e:
        raise ApplyFailure(f"failed to write temp file: {e}") from e

    try:
        cmd = ["sudo", "-S", "install", "-m", INSTALL_MODE, str(tmp_path), str(target)]
        log.info(f"Installing helper to '{target}' with sudo...")
        try:
            result = subprocess.run(
                cmd,
                input=(password + "\n").encode(),
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                timeout=SUDO_TIMEOUT,
                check=False,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            raise ApplyFailure(f"install failed: {e}") from e
        if result.returncode != 0:
            output = result.stdout.decode("utf-8", errors="replace").strip()
            raise ApplyFailure(f"install failed: {output or f'exit code {result.returncode}'}")
    finally:
        tmp_path.unlink(missing_ok=True)


def _user_rename(payload: bytes, target: Path) -> None:
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = _write_temp(payload, target.parent)
    except OSError as e:
        raise ApplyFailure(f"failed to write temp file: {e}") from e

    try:
        os.replace(tmp_path, target)
    except OSError as e:
        raise ApplyFailure(f"failed to move vlink: {e}") from e
    finally:
        tmp_path.unlink(missing_ok=True)


def install_helper(payload: bytes, platform: HostPlatform, target: Path, sudo_password: Optional[str] = None) -> None:
    """
    Installs a helper binary at `target` using the platform's install method.

    :param payload: The extracted helper binary.
    :param platform: Decides between an elevated copy and a user-level rename.
    :param target: Final install path.
    :param sudo_password: Required for elevated copies.
    :raises ElevationRequired: If an elevated copy has no password.
    :raises ApplyFailure: If writing or installing fails.
    """
    password = require_elevation(platform, sudo_password)
    if platform.install_method is InstallMethod.ELEVATED_COPY:
        _elevated_copy(payload, Path(target), password)
    else:
        _user_rename(payload, Path(target))
    log.info(f"Helper binary installed at '{target}'.")
