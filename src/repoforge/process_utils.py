"""
Subprocess helpers shared by the pipeline stages.

External tools (git, makepkg, repo-add) can spawn deep process trees, so
stopping one means stopping the whole tree. Output is always merged and
forwarded to the logging system line by line.
"""

import logging
import subprocess
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

import psutil


class CommandTimeoutError(Exception):
    """Raised when a command exceeds its time limit."""

    pass


def kill_process_tree(pid: int) -> int:
    """Terminate a process and all of its descendants.

    Children are terminated before their parents; anything still alive
    after a short grace period is killed.

    Args:
        pid: Root process ID

    Returns:
        Number of processes signalled
    """
    try:
        root = psutil.Process(pid)
        processes: List[psutil.Process] = root.children(recursive=True)
    except psutil.NoSuchProcess:
        return 0
    processes.reverse()
    processes.append(root)

    signalled = 0
    for proc in processes:
        try:
            proc.terminate()
            signalled += 1
        except psutil.NoSuchProcess:
            pass  # Already dead
        except psutil.AccessDenied as e:
            logging.warning(f"Failed to terminate process {proc.pid}: {e}")

    _gone, alive = psutil.wait_procs(processes, timeout=3)

    for proc in alive:
        try:
            proc.kill()
            logging.warning(f"Force killed stubborn process {proc.pid}")
        except psutil.NoSuchProcess:
            pass
        except psutil.AccessDenied as e:
            logging.warning(f"Failed to force kill process {proc.pid}: {e}")

    return signalled


def current_username() -> str:
    """Name of the user owning the current process."""
    return psutil.Process().username()


def stream_command(
    cmd: Sequence[str], cwd: Optional[Path] = None, prefix: str = ""
) -> int:
    """Run a command, forwarding merged stdout/stderr to the log.

    There is no time limit. On KeyboardInterrupt the process tree is
    terminated and the interrupt re-raised.

    Args:
        cmd: Command and arguments
        cwd: Working directory
        prefix: Text prepended to every forwarded line

    Returns:
        Process exit code

    Raises:
        OSError: If the command cannot be started
    """
    logging.debug(f"Running: {' '.join(cmd)} (cwd={cwd})")
    proc = subprocess.Popen(
        list(cmd),
        cwd=cwd,
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        stdin=subprocess.DEVNULL,
        text=True,
        errors="replace",
        bufsize=1,
    )
    try:
        assert proc.stdout is not None
        for line in proc.stdout:
            logging.info(f"{prefix}{line.rstrip()}")
        return proc.wait()
    except KeyboardInterrupt:
        logging.warning(f"Interrupted, stopping {cmd[0]} (pid {proc.pid})")
        kill_process_tree(proc.pid)
        proc.wait()
        raise
    finally:
        if proc.stdout is not None:
            proc.stdout.close()


def run_with_timeout(
    cmd: Sequence[str], cwd: Optional[Path] = None, timeout: float = 120
) -> Tuple[int, str]:
    """Run a command and capture its stdout within a time limit.

    Args:
        cmd: Command and arguments
        cwd: Working directory
        timeout: Seconds before the process tree is killed

    Returns:
        Tuple of (exit code, stdout text)

    Raises:
        CommandTimeoutError: If the time limit is exceeded
        OSError: If the command cannot be started
    """
    proc = subprocess.Popen(
        list(cmd),
        cwd=cwd,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        stdin=subprocess.DEVNULL,
        text=True,
        errors="replace",
    )
    try:
        stdout, stderr = proc.communicate(timeout=timeout)
    except subprocess.TimeoutExpired:
        kill_process_tree(proc.pid)
        proc.communicate()
        raise CommandTimeoutError(f"{cmd[0]} timed out after {timeout}s")
    except KeyboardInterrupt:
        kill_process_tree(proc.pid)
        proc.wait()
        raise

    if stderr.strip():
        logging.debug(stderr.rstrip())
    return proc.returncode, stdout
