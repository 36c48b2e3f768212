"""Starting commands and running setup and teardown scripts."""

from __future__ import annotations

import os
import subprocess
import time
from collections.abc import Mapping, Sequence

from sirun.config import Config

_MAX_ATTEMPTS = 100
_RETRY_DELAY = 1.0


class ScriptError(RuntimeError):
    """Raised when a setup or teardown script cannot be completed."""


def _stdio() -> int | None:
    return subprocess.DEVNULL if "SIRUN_NO_STDIO" in os.environ else None


def run_cmd(command: Sequence[str], env: Mapping[str, str]) -> subprocess.Popen:
    """Start ``command`` with ``env`` layered over the current environment."""
    if not command:
        raise ValueError("command must not be empty")
    return subprocess.Popen(
        list(command),
        env={**os.environ, **env},
        stdout=_stdio(),
        stderr=_stdio(),
    )


def _run_script(kind: str, command: list[str] | None, env: Mapping[str, str]) -> None:
    if "SIRUN_SKIP_SETUP" in os.environ or command is None:
        return
    for _ in range(_MAX_ATTEMPTS):
        code = run_cmd(command, env).wait()
        if code == 0:
            return
        if code < 0:
            raise ScriptError(f"{kind} script was terminated by signal {-code}. aborting.")
        time.sleep(_RETRY_DELAY)
    raise ScriptError(f"{kind} script did not complete successfully. aborting.")


def run_setup(config: Config) -> None:
    """Run the setup script, retrying until it succeeds."""
    _run_script("setup", config.setup, config.env)


def run_teardown(config: Config) -> None:
    """Run the teardown script, retrying until it succeeds."""
    _run_script("teardown", config.teardown, config.env)