import sys
import logging
import threading
import subprocess
from pathlib import Path
from typing import Any, Dict, List, Optional

log = logging.getLogger(__name__)


#* --- Process Creation ---
def get_popen_creation_flags() -> Dict[str, Any]:
    """
    Returns platform-specific keyword arguments for subprocess.Popen.

    On Windows the helper gets its own process group and no console window, so
    it can later be interrupted with CTRL_BREAK_EVENT. Elsewhere it is started
    in a new session so terminal signals aimed at the console do not reach it.
    """
    if sys.platform == "win32":
        return {
            "creationflags": subprocess.CREATE_NEW_PROCESS_GROUP | subprocess.CREATE_NO_WINDOW
        }
    return {"start_new_session": True}


def get_helper_args(binary_path: Path, config_path: Optional[Path]) -> List[str]:
    """Returns the helper's command line: `<binary> -config <path>`."""
    args = [str(binary_path)]
    if config_path:
        args += ["-config", str(config_path)]
    return args


def spawn(args: List[str], name: str) -> subprocess.Popen:
    """
    Launches a process with its output routed to the `proc.<name>` logger.

    :param args: Full command line.
    :param name: Logical name used for logging.
    :raises OSError: If the executable cannot be started.
    """
    p = subprocess.Popen(
        args,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        stdin=subprocess.DEVNULL,
        **get_popen_creation_flags(),
    )
    log.debug(f"Spawned {name} with PID {p.pid}: {' '.join(args)}")
    log_process_output(p, name)
    return p


#* --- Output Handling ---
def _read_pipe(pipe, process_name: str, level: int):
    """Target function for reader threads. Reads and logs lines from a subprocess pipe."""
    proc_logger = logging.getLogger(f"proc.{process_name}")
    try:
        for line_bytes in iter(pipe.readline, b""):
            line = line_bytes.decode("utf-8", errors="replace").strip()
            if line:
                proc_logger.log(level, line)
    except Exception as e:
        proc_logger.debug(f"Pipe reader for {process_name} stream exited: {e}")
    finally:
        pipe.close()


def log_process_output(process: subprocess.Popen, process_name: str) -> None:
    """
    Starts background daemon threads that drain a process's stdout/stderr.

    Draining keeps the pipes from filling up and blocking the child. Stdout
    lines are logged at INFO and stderr lines at ERROR.

    :param process: The `subprocess.Popen` object to monitor.
    :param process_name: The logical name of the process for logging context.
    """
    for stream, level, suffix in ((process.stdout, logging.INFO, "stdout"), (process.stderr, logging.ERROR, "stderr")):
        if stream:
            threading.Thread(
                target=_read_pipe,
                args=(stream, process_name, level),
                daemon=True,
                name=f"{process_name}-{suffix}",
            ).start()
