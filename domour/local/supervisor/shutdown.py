import sys
import signal
import psutil
import logging
import subprocess
from typing import List

log = logging.getLogger(__name__)


def _send_interrupt(proc: subprocess.Popen) -> None:
    """
    Asks the process to exit. Delivery is best-effort: a failure here is only
    logged, the forced kill that follows guarantees termination.
    """
    sig = signal.CTRL_BREAK_EVENT if sys.platform == "win32" else signal.SIGINT
    try:
        proc.send_signal(sig)
        log.debug(f"Sent interrupt to PID {proc.pid}.")
    except (OSError, ValueError) as e:
        log.debug(f"Could not interrupt PID {proc.pid}: {e}")


def _collect_children(proc: subprocess.Popen) -> List[psutil.Process]:
    """Snapshots the process's descendants while it is still their parent."""
    try:
        return psutil.Process(proc.pid).children(recursive=True)
    except psutil.Error:
        return []


def _forceful_kill(proc: subprocess.Popen) -> None:
    """Kills the process and anything it spawned, then reaps it."""
    children = _collect_children(proc)
    log.warning(f"Process {proc.pid} did not exit gracefully. Forcing shutdown...")
    for child in children:
        try:
            log.warning(f"Killing child process {child.pid}.")
            child.kill()
        except psutil.NoSuchProcess:
            continue
        except psutil.Error as e:
            log.debug(f"Could not kill child process {child.pid}: {e}")
    try:
        proc.kill()
    except OSError as e:
        log.debug(f"Kill of PID {proc.pid} failed, it has probably exited already: {e}")
    # Reaping an already-exited process returns immediately.
    proc.wait()
    psutil.wait_procs(children, timeout=1)


def graceful_shutdown_sequence(proc: subprocess.Popen, grace_period: float) -> bool:
    """
    Interrupts a process, waits up to `grace_period` and kills it if needed.

    :param proc: The process to stop.
    :param grace_period: Seconds to wait for a voluntary exit.
    :return: True if the process had to be killed.
    """
    _send_interrupt(proc)
    try:
        proc.wait(timeout=grace_period)
        log.debug(f"Process {proc.pid} exited with code {proc.returncode}.")
        return False
    except subprocess.TimeoutExpired:
        _forceful_kill(proc)
        return True
