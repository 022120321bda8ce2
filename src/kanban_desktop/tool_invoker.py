"""
Runs external window-manager tools and collapses every failure to None
"""

import logging
import subprocess
from collections.abc import Callable, Sequence

logger = logging.getLogger(__name__)

ToolRunner = Callable[[str, Sequence[str]], str | None]


def run_tool(command: str, args: Sequence[str], timeout: float | None = None) -> str | None:
    """Run ``command`` and return its trimmed stdout, or None on any failure.

    stdin is closed and stderr discarded. A missing binary, a non-zero exit,
    a timeout and undecodable output all look the same to the caller.
    """
    argv = [command, *(str(a) for a in args)]
    try:
        result = subprocess.run(
            argv,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
            check=True,
            timeout=timeout,
        )
    except FileNotFoundError:
        logger.debug("%s not installed", command)
        return None
    except subprocess.TimeoutExpired:
        logger.debug("%s timed out after %ss", command, timeout)
        return None
    except subprocess.CalledProcessError as exc:
        logger.debug("%s exited with status %s", command, exc.returncode)
        return None
    except (OSError, subprocess.SubprocessError) as exc:
        logger.debug("%s failed: %s", command, exc)
        return None

    try:
        return result.stdout.decode("utf-8").strip()
    except UnicodeDecodeError:
        logger.debug("%s produced undecodable output", command)
        return None


class ToolInvoker:
    """Callable wrapper around :func:`run_tool` with a fixed timeout."""

    def __init__(self, timeout: float = 1.5):
        self.timeout = timeout

    def __call__(self, command: str, args: Sequence[str]) -> str | None:
        return run_tool(command, args, timeout=self.timeout)
