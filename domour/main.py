import sys
import time
import logging
import threading
import setproctitle

# Basic console logger for messages BEFORE full setup is complete.
# This logger will be replaced by the full setup later.
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)-8s - [console] - %(message)s',
    stream=sys.stdout
)
log = logging.getLogger("console")

import domour.local.console as console
from domour.local.app import CopilotApp
from domour.local.config import effective_settings as config
from domour.local.supervisor import HelperState
from domour.log.setup import setup_logging

CONSOLE_LOCK = threading.Lock()


def _run_in_foreground(app: CopilotApp) -> None:
    """Keeps a one-off 'start' attached to the helper until it exits or Ctrl+C."""
    if app.supervisor.state is not HelperState.RUNNING:
        return
    print("vlink is running in the foreground. Press Ctrl+C to stop it.")
    try:
        while app.supervisor.state is HelperState.RUNNING:
            time.sleep(0.5)
    except KeyboardInterrupt:
        log.info("Interrupted, stopping vlink...")


def main() -> None:
    """The main entry point for the management console."""
    setproctitle.setproctitle("Domour Copilot - Console")
    setup_logging(getattr(logging, config.LOG_LEVEL, logging.INFO))

    app = CopilotApp()
    app.startup()

    # Non-interactive mode for one-off commands
    if len(sys.argv) > 1:
        command, args = sys.argv[1].lower(), sys.argv[2:]
        if "--verbose" in args:
            console.toggle_verbose_logging()
            args.remove("--verbose")
        try:
            console.execute_command(app, command, args)
            if command in ("start", "restart"):
                _run_in_foreground(app)
        finally:
            app.shutdown()
        return

    # Interactive mode
    print(f"--- {config.APP_NAME} Console ({config.APP_VERSION}) ---")
    print("Type 'help' for a list of commands.")
    print(f"vlink is currently {'ACCEPTING connections' if app.is_helper_alive() else 'not reachable'}.")

    try:
        while True:
            try:
                # The input prompt must be outside the lock to not block background threads
                command_line_str = input("> ")
                with CONSOLE_LOCK:
                    command_line = command_line_str.strip().split()
                    if not command_line:
                        continue
                    command, args = command_line[0].lower(), command_line[1:]
                    if console.execute_command(app, command, args):
                        break
            except (KeyboardInterrupt, EOFError):
                with CONSOLE_LOCK:
                    log.warning("\nExiting console due to interrupt.")
                    break
            except Exception as e:
                with CONSOLE_LOCK:
                    log.error(f"An unexpected error occurred in the console: {e}", exc_info=True)
    finally:
        app.shutdown()


if __name__ == "__main__":
    main()
    print("Exiting console application. See you next time!")
