import logging
import requests
from pathlib import Path
from typing import Any, Callable, Optional

from domour.local.config import effective_settings as config
from domour.local.errors import CopilotError
from domour.local.update import applier, archive
from domour.local.update.fetcher import LATEST, ReleaseFetcher
from domour.local.update.platforms import HostPlatform, current_platform
from domour.local.supervisor.helper_paths import helper_binary_path

log = logging.getLogger(__name__)

EVENT_INSTALL_STATUS = "vlink:install"


class UpdateService:
    """
    Runs the fetch -> extract -> apply pipeline for the application and the helper.

    Each call runs synchronously on the calling thread and is bounded by the HTTP
    timeouts. Callers must not run two updates at once.
    """

    def __init__(
        self,
        platform: Optional[HostPlatform] = None,
        session: Optional[requests.Session] = None,
        notify: Optional[Callable[[str, Any], None]] = None,
        app_binary: Optional[Path] = None,
        helper_binary: Optional[Path] = None,
    ) -> None:
        """
        :param platform: Target platform; defaults to the running one.
        :param session: Shared HTTP session, injectable for tests.
        :param notify: Receives (event, payload) progress notifications.
        :param app_binary: Override for the running executable's path.
        :param helper_binary: Override for the helper's install path.
        """
        self.platform = platform or current_platform()
        self.session = session
        self.notify = notify
        self.app_binary = app_binary
        self.helper_binary = helper_binary

    def _fetcher(self, base_url: str, product: str) -> ReleaseFetcher:
        return ReleaseFetcher(base_url, product, platform=self.platform, session=self.session)

    def _download_binary(self, base_url: str, product: str, version: str) -> bytes:
        downloaded = self._fetcher(base_url, product).fetch(version)
        return archive.extract(downloaded.data, self.platform.binary_name(product), downloaded.archive_format)

    def latest_version(self) -> str:
        """Returns the newest published version of the application."""
        return str(self._fetcher(config.UPDATE_BASE_URL, config.APP_PRODUCT).latest_version())

    def self_update(self, version: str = LATEST) -> str:
        """
        Replaces the running application binary with `version`.

        The new version runs after the user restarts the application.

        :raises CopilotError: Any pipeline failure, including `RollbackFailure`.
        """
        target = Path(self.app_binary) if self.app_binary else applier.current_executable()
        log.info(f"Self-update requested (version: {version or LATEST}).")
        payload = self._download_binary(config.UPDATE_BASE_URL, config.APP_PRODUCT, version)
        applier.replace_executable(target, payload)
        return "update applied, please restart the app"

    def install_helper(self, version: str = LATEST, sudo_password: Optional[str] = None) -> str:
        """
        Downloads and installs the vlink helper binary.

        The sudo password requirement is checked before anything is downloaded.

        :raises ElevationRequired: If an elevated install has no password.
        :raises CopilotError: Any other pipeline failure.
        """
        password = applier.require_elevation(self.platform, sudo_password)
        target = Path(self.helper_binary) if self.helper_binary else helper_binary_path(self.platform)

        self._status("Starting vlink installation")
        try:
            payload = self._download_binary(config.HELPER_BASE_URL, config.HELPER_PRODUCT, version)
        except CopilotError:
            self._status("vlink download failed")
            raise
        self._status("vlink download complete")

        self._status(f"Writing {target}")
        try:
            applier.install_helper(payload, self.platform, target, password)
        except CopilotError:
            self._status("vlink installation failed")
            raise
        self._status("vlink installation complete")
        return "vlink installed"

    def _status(self, message: str) -> None:
        log.info(message)
        if self.notify is None:
            return
        try:
            self.notify(EVENT_INSTALL_STATUS, message)
        except Exception as e:
            log.error(f"Event listener for '{EVENT_INSTALL_STATUS}' failed: {e}", exc_info=True)
