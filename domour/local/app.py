import logging
import threading
from typing import Any, Callable, Iterable, List, Optional

from domour.local.config import effective_settings as config
from domour.local import relay
from domour.local.errors import ConfigRequired, CopilotError
from domour.local.supervisor import HelperSupervisor, helper_paths
from domour.local.update import UpdateService
from domour.local.user_settings import AppSettings, UserSettingsStore

log = logging.getLogger(__name__)

Listener = Callable[[str, Any], None]


class CopilotApp:
    """
    The control plane behind the desktop shell.

    It binds the helper supervisor, the update service, the helper config and
    user settings collaborators, and the chat relay. Events that the GUI would
    receive are fanned out to listeners registered with `subscribe`.
    """

    def __init__(
        self,
        supervisor: Optional[HelperSupervisor] = None,
        updater: Optional[UpdateService] = None,
        settings_store: Optional[UserSettingsStore] = None,
    ) -> None:
        self._listeners: List[Listener] = []
        self._listeners_lock = threading.Lock()
        self.supervisor = supervisor or HelperSupervisor(notify=self.emit)
        self.updater = updater or UpdateService(notify=self.emit)
        self.settings_store = settings_store or UserSettingsStore()

    #* --- Events ---
    def subscribe(self, listener: Listener) -> None:
        with self._listeners_lock:
            self._listeners.append(listener)

    def emit(self, event: str, payload: Any = None) -> None:
        with self._listeners_lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(event, payload)
            except Exception as e:
                log.error(f"Listener failed for event '{event}': {e}", exc_info=True)

    #* --- Lifecycle ---
    def startup(self) -> AppSettings:
        """Loads user settings and starts the helper if the user asked for it."""
        settings = self.settings_store.load()
        if settings.vlinkAutoStart:
            log.info("vlink auto-start is enabled.")
            try:
                self.supervisor.start()
            except ConfigRequired as e:
                log.warning(f"vlink auto-start skipped: {e}")
            except CopilotError as e:
                log.error(f"vlink auto-start failed: {e}")
        return settings

    def shutdown(self) -> None:
        self.supervisor.stop()

    def about(self) -> str:
        return f"A smart assistant.\nVersion: {config.APP_VERSION}"

    #* --- Settings ---
    def get_settings(self) -> AppSettings:
        return self.settings_store.get()

    def save_settings(self, settings: AppSettings) -> str:
        return self.settings_store.save(settings)

    #* --- Helper ---
    def start_helper(self) -> str:
        return self.supervisor.start()

    def stop_helper(self) -> str:
        return self.supervisor.stop()

    def is_helper_alive(self) -> bool:
        return self.supervisor.probe()

    def is_helper_installed(self) -> bool:
        return self.supervisor.is_installed()

    def get_helper_config(self) -> helper_paths.HelperConfig:
        return helper_paths.read_config(self.supervisor.home_config)

    def save_helper_config(self, content: str) -> str:
        helper_paths.save_config(content, self.supervisor.home_config)
        return "vlink config saved"

    def install_helper(self, version: str = "latest", sudo_password: Optional[str] = None) -> str:
        return self.updater.install_helper(version, sudo_password)

    #* --- Updates ---
    def self_update(self, version: str = "latest") -> str:
        return self.updater.self_update(version)

    #* --- Chat ---
    def chat(self, prompt: str, attachments: Optional[Iterable[relay.Attachment]] = None) -> str:
        return relay.chat(prompt, attachments)
