import logging
from typing import TYPE_CHECKING, List

from domour.local.errors import CopilotError
from domour.local.console.handler import (
    display_status, handle_chat, handle_config_command, handle_helper_config_command,
    handle_install_helper, handle_latest, handle_settings_command, handle_start,
    handle_update, print_help, toggle_verbose_logging,
)

if TYPE_CHECKING:
    from domour.local.app import CopilotApp

log = logging.getLogger(__name__)


def execute_command(app: "CopilotApp", command: str, args: List[str]) -> bool:
    """
    Executes a single command from the user.

    Control plane errors end the command, not the console: actionable ones are
    shown as a prompt, the rest are logged as-is.

    :param app: The control plane instance the console drives.
    :param command: The main command string (e.g., 'start', 'update').
    :param args: A list of arguments for the command.
    :return bool: True if the console should exit, False otherwise.
    """
    log.debug(f"Executing command: {command}, args: {args}")
    command_map = {
        "start": lambda: handle_start(app),
        "stop": lambda: print(app.stop_helper()),
        "status": lambda: display_status(app),
        "probe": lambda: print("vlink port is " + ("accepting connections" if app.is_helper_alive() else "closed")),
        "helper-config": lambda: handle_helper_config_command(app, args),
        "install-helper": lambda: handle_install_helper(app, args),
        "latest": lambda: handle_latest(app),
        "update": lambda: handle_update(app, args),
        "settings": lambda: handle_settings_command(app, args),
        "config": lambda: handle_config_command(args),
        "chat": lambda: handle_chat(app, args),
        "about": lambda: print(app.about()),
        "verbose": toggle_verbose_logging,
        "help": print_help,
    }

    if command == "exit":
        return True

    try:
        if command in command_map:
            command_map[command]()
        elif command == "restart":
            log.info("Restarting vlink...")
            print(app.stop_helper())
            handle_start(app)
        else:
            log.info(f"Unknown command: '{command}'. Type 'help' for a list of commands.")
    except CopilotError as e:
        if e.actionable:
            print(f"\nAction required: {e}\n")
        else:
            log.error(f"'{command}' failed: {e}")
    return False
