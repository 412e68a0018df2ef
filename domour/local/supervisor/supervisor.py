import enum
import time
import socket
import psutil
import logging
import threading
import subprocess
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from domour.local.config import effective_settings as config
from domour.local.errors import ConfigRequired, SpawnFailure
from domour.local.update.platforms import HostPlatform, current_platform
from domour.local.supervisor import helper_paths, process_utils, shutdown

log = logging.getLogger(__name__)

HELPER_NAME = "vlink"
EVENT_CONFIG_REQUIRED = "vlink:config"

Notifier = Callable[[str, Any], None]


class HelperState(enum.Enum):
    STOPPED = "stopped"
    STARTING = "starting"
    RUNNING = "running"
    STOPPING = "stopping"


class HelperSupervisor:
    """
    Owns the lifecycle of the external vlink helper process.

    The process handle is private and every read or write of it happens under
    `self._lock`. A watcher thread per launch clears the handle when the process
    exits on its own; `probe` never touches the handle.
    """

    def __init__(
        self,
        platform: Optional[HostPlatform] = None,
        binary_path: Optional[Path] = None,
        home_config: Optional[Path] = None,
        system_config: Optional[Path] = None,
        notify: Optional[Notifier] = None,
    ) -> None:
        """
        :param platform: Target platform; defaults to the running one.
        :param binary_path: Override for the installed helper binary.
        :param home_config: Override for `~/.vlink/config.json`.
        :param system_config: Override for `/etc/vlink/config.json`.
        :param notify: Receives (event, payload) pairs, e.g. when a config is required.
        """
        self.platform = platform or current_platform()
        self.binary_path = Path(binary_path) if binary_path else helper_paths.helper_binary_path(self.platform)
        self.home_config = home_config
        self.system_config = system_config
        self.notify = notify

        self._lock = threading.Lock()
        self._proc: Optional[subprocess.Popen] = None
        self._started_at: Optional[float] = None
        self._state = HelperState.STOPPED

    @property
    def state(self) -> HelperState:
        return self._state

    def _is_running_locked(self) -> bool:
        return self._proc is not None and self._proc.poll() is None

    def _clear_locked(self) -> None:
        self._proc = None
        self._started_at = None
        self._state = HelperState.STOPPED

    def start(self) -> str:
        """
        Starts the helper unless it is already running.

        :return: A status message.
        :raises ConfigRequired: If no config existed; a default one was created.
        :raises SpawnFailure: If the process could not be launched.
        """
        with self._lock:
            if self._is_running_locked():
                log.debug(f"vlink already running with PID {self._proc.pid}.")
                return "vlink is already running"

            self._state = HelperState.STARTING
            try:
                config_path, created = helper_paths.resolve_config_path(
                    self.platform, self.home_config, self.system_config
                )
            except OSError as e:
                self._clear_locked()
                raise SpawnFailure(f"failed to resolve vlink config: {e}") from e

            if created:
                self._clear_locked()
                try:
                    content = config_path.read_text()
                except OSError as e:
                    log.warning(f"Could not read back the new vlink config '{config_path}': {e}")
                    content = config.HELPER_DEFAULT_CONFIG
                self._emit(EVENT_CONFIG_REQUIRED, helper_paths.HelperConfig(config_path, content))
                raise ConfigRequired(config_path, content)

            args = process_utils.get_helper_args(self.binary_path, config_path)
            log.info(f"Starting process: {HELPER_NAME} with config '{config_path}'...")
            try:
                proc = process_utils.spawn(args, HELPER_NAME)
            except (OSError, ValueError) as e:
                self._clear_locked()
                log.error(f"Failed to start process '{HELPER_NAME}': {e}")
                raise SpawnFailure(f"failed to start vlink: {e}") from e

            self._proc = proc
            self._started_at = time.time()
            self._state = HelperState.RUNNING
            threading.Thread(
                target=self._watch, args=(proc,), daemon=True, name=f"{HELPER_NAME}-watcher"
            ).start()
            log.info(f"{HELPER_NAME} started successfully with PID: {proc.pid}")
            return "vlink started"

    def _watch(self, proc: subprocess.Popen) -> None:
        """Waits for `proc` to exit and clears the handle if it still refers to it."""
        try:
            returncode = proc.wait()
        except Exception as e:
            log.debug(f"Waiting on {HELPER_NAME} PID {proc.pid} failed: {e}")
            returncode = None

        with self._lock:
            if self._proc is proc:
                log.warning(f"{HELPER_NAME} (PID {proc.pid}) exited with code {returncode}.")
                self._clear_locked()

    def stop(self) -> str:
        """
        Stops the helper: interrupt, wait for the grace period, then kill.

        Stopping when nothing runs is a no-op.

        :return: A status message.
        """
        with self._lock:
            if self._proc is None:
                return "vlink is not running"

            proc = self._proc
            self._state = HelperState.STOPPING
            log.info(f"Stopping {HELPER_NAME} (PID {proc.pid})...")
            try:
                forced = shutdown.graceful_shutdown_sequence(proc, config.HELPER_STOP_GRACE_PERIOD)
            finally:
                self._clear_locked()
            log.info(f"{HELPER_NAME} stopped{' forcefully' if forced else ''}.")
            return "vlink stopped"

    def probe(self) -> bool:
        """
        Checks whether something accepts TCP connections on the helper's port.

        This says nothing about who started the helper and never waits for the lock.
        """
        address = (config.HELPER_PROBE_HOST, config.HELPER_PROBE_PORT)
        try:
            with socket.create_connection(address, timeout=config.HELPER_PROBE_TIMEOUT):
                return True
        except OSError:
            return False

    def is_installed(self) -> bool:
        """Returns True if the helper binary exists at its install path."""
        return self.binary_path.exists()

    def status(self) -> Dict[str, Any]:
        """Returns a snapshot of the supervised process for display purposes."""
        with self._lock:
            proc, started_at, state = self._proc, self._started_at, self._state

        info: Dict[str, Any] = {
            "state": state.value,
            "pid": proc.pid if proc else None,
            "uptime": round(time.time() - started_at, 1) if started_at else None,
            "memory_rss": None,
            "installed": self.is_installed(),
            "port_alive": self.probe(),
        }
        if proc is not None:
            try:
                info["memory_rss"] = psutil.Process(proc.pid).memory_info().rss
            except psutil.Error:
                pass
        return info

    def _emit(self, event: str, payload: Any) -> None:
        if self.notify is None:
            return
        try:
            self.notify(event, payload)
        except Exception as e:
            log.error(f"Event listener for '{event}' failed: {e}", exc_info=True)
