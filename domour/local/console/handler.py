import json
import getpass
import logging
from dataclasses import fields, replace
from typing import TYPE_CHECKING, List

from domour.local.config import effective_settings as config
from domour.local.errors import ConfigRequired, ElevationRequired
from domour.local.relay import Attachment
from domour.local.update.platforms import InstallMethod

if TYPE_CHECKING:
    from domour.local.app import CopilotApp

log = logging.getLogger(__name__)

VERBOSE_LOGGING = False


#* --- Helper Process ---
def display_status(app: "CopilotApp") -> None:
    """Shows the supervised helper's state, resource usage and port health."""
    info = app.supervisor.status()
    print("\n--- vlink Status ---")
    print(f"  State       : {info['state'].upper()}")
    if info["pid"]:
        mem = f"{info['memory_rss'] / 1024 / 1024:.1f} MB" if info["memory_rss"] else "n/a"
        print(f"  PID         : {info['pid']} | MEM: {mem} | Uptime: {info['uptime']}s")
    print(f"  Installed   : {'yes' if info['installed'] else 'no'} ({app.supervisor.binary_path})")
    print(f"  Port {config.HELPER_PROBE_PORT:<6} : {'ACCEPTING' if info['port_alive'] else 'CLOSED'}")
    print("-" * 20 + "\n")


def handle_start(app: "CopilotApp") -> None:
    try:
        print(app.start_helper())
    except ConfigRequired as e:
        print("\nvlink needs a configuration before it can start.")
        print(f"A default config was created at '{e.path}'.")
        print("Edit it, or use 'helper-config set <JSON>', then run 'start' again.\n")


def handle_helper_config_command(app: "CopilotApp", args: List[str]) -> None:
    """
    Handles the 'helper-config' sub-commands.

    :param args: 'show' (default) or 'set <JSON text>'.
    """
    sub_command = args[0].lower() if args else "show"
    if sub_command == "show":
        helper_config = app.get_helper_config()
        print(f"\n--- {helper_config.path} ---\n{helper_config.content.rstrip()}\n")
    elif sub_command == "set":
        content = " ".join(args[1:]).strip()
        if not content:
            print("Usage: helper-config set <JSON>")
            return
        try:
            json.loads(content)
        except json.JSONDecodeError as e:
            print(f"Error: the config is not valid JSON ({e}).")
            return
        print(app.save_helper_config(content + "\n"))
    else:
        print(f"Unknown helper-config sub-command: '{sub_command}'. Use 'show' or 'set'.")


def handle_install_helper(app: "CopilotApp", args: List[str]) -> None:
    version = args[0] if args else "latest"
    password = None
    if app.updater.platform.install_method is InstallMethod.ELEVATED_COPY:
        password = getpass.getpass(f"sudo password (to write {app.supervisor.binary_path}): ")
    try:
        print(app.install_helper(version, password))
    except ElevationRequired:
        print("A sudo password is required to install vlink. Nothing was downloaded.")


#* --- Updates ---
def handle_update(app: "CopilotApp", args: List[str]) -> None:
    version = args[0] if args else "latest"
    print(app.self_update(version))


def handle_latest(app: "CopilotApp") -> None:
    print(f"Latest published version: {app.updater.latest_version()} (running {config.APP_VERSION})")


#* --- Settings ---
def handle_settings_command(app: "CopilotApp", args: List[str]) -> None:
    """
    Handles the 'settings' sub-commands for the user's preferences.

    :param args: 'show' (default) or 'set <name> <value>'.
    """
    sub_command = args[0].lower() if args else "show"
    current = app.get_settings()
    if sub_command == "show":
        print("\n--- User Settings ---")
        for key, value in current.to_dict().items():
            print(f"  {key} = {value!r}")
        print()
    elif sub_command == "set" and len(args) >= 3:
        key, value_str = args[1], " ".join(args[2:])
        types = {f.name: f.type for f in fields(current)}
        if key not in types:
            print(f"Error: unknown setting '{key}'. Available: {', '.join(types)}")
            return
        value = value_str.lower() in ('true', '1', 't', 'yes', 'y') if types[key] is bool else value_str
        print(app.save_settings(replace(current, **{key: value})))
    else:
        print("Usage: settings [show | set <name> <value>]")


def handle_config_command(args: List[str]) -> None:
    """
    Handles the 'config' sub-commands for the runtime configuration overrides.

    :param args: 'show' (default) or 'set <KEY> <VALUE>'.
    """
    sub_command = args[0].lower() if args else "show"
    if sub_command == "show":
        print("\n--- Current Runtime Configuration ---")
        for key in sorted(config.MODIFIABLE_SETTINGS):
            print(f"  {key} = {getattr(config, key, 'N/A')}")
        print(f"(Overrides file: {config.OVERRIDES_JSON_PATH})\n")
    elif sub_command == "set" and len(args) >= 3:
        key, value_str = args[1].upper(), " ".join(args[2:])
        try:
            config.update_setting(key, value_str)
        except KeyError:
            print(f"Error: '{key}' is not a modifiable setting.")
            return
        except (ValueError, TypeError) as e:
            print(f"Error: could not convert '{value_str}' for '{key}': {e}")
            return
        print(f"Configuration '{key}' updated.")
    else:
        print("Usage: config [show | set <KEY> <VALUE>]")


#* --- Chat ---
def handle_chat(app: "CopilotApp", args: List[str]) -> None:
    """Sends the arguments as a prompt; '@path' arguments are attached as text files."""
    words, attachments = [], []
    for arg in args:
        if arg.startswith("@") and len(arg) > 1:
            path = arg[1:]
            with open(path, "r", encoding="utf-8", errors="replace") as f:
                attachments.append(Attachment(name=path, content=f.read()))
        else:
            words.append(arg)
    answer = app.chat(" ".join(words), attachments)
    if answer:
        print(f"\n{answer}\n")


#* --- Console ---
def toggle_verbose_logging() -> None:
    """Toggles verbose (DEBUG level) logging for the console handler."""
    global VERBOSE_LOGGING
    VERBOSE_LOGGING = not VERBOSE_LOGGING
    new_level = logging.DEBUG if VERBOSE_LOGGING else logging.INFO

    root_logger = logging.getLogger()
    found_handler = False
    for handler in root_logger.handlers:
        # FileHandler subclasses StreamHandler; only the console one is changed.
        if type(handler) is logging.StreamHandler:
            handler.setLevel(new_level)
            found_handler = True
            break

    status = "ON" if VERBOSE_LOGGING else "OFF"
    if found_handler:
        print(f"Verbose console logging is now {status}.")
    else:
        print("Could not find console handler to modify level.")


def print_help():
    """Prints the main help text for the console."""
    print("\nAvailable commands:")
    print("  start                     - Start the vlink helper.")
    print("  stop                      - Stop the vlink helper (forced after 3 seconds).")
    print("  restart                   - Stop and then start the vlink helper.")
    print("  status                    - Show the helper's state and port health.")
    print("  probe                     - Check whether the helper port accepts connections.")
    print("  helper-config [show|set]  - Show or replace the helper's JSON configuration.")
    print("  install-helper [version]  - Download and install the vlink binary.")
    print("  latest                    - Show the latest published application version.")
    print("  update [version]          - Download and apply an application update.")
    print("  settings [show|set]       - Show or change user settings.")
    print("  config [show|set]         - Show or change runtime configuration overrides.")
    print("  chat <prompt> [@file ...] - Ask the chat assistant.")
    print("  about                     - Show version information.")
    print("  verbose                   - Toggle detailed DEBUG log output in the console.")
    print("  exit                      - Stop the helper and exit the console.")
    print()
