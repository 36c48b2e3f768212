"""Command line entry point: runs benchmark configurations and reports metrics."""

from __future__ import annotations

import dataclasses
import json
import math
import os
import socket
import sys
import threading
import time
from collections.abc import Sequence

from sirun.config import Config, ConfigError, load_config
from sirun.rusage import Rusage
from sirun.statsd import StatsdListener
from sirun.subproc import ScriptError, run_cmd, run_setup, run_teardown
from sirun.summarize import summarize

_SELF_COMMAND = [sys.executable, "-m", "sirun.cli"]
_SETTLE_TIMEOUT = 1.0
_SETTLE_POLL = 0.01


def kernel_metrics(wall_time: float, usage: Rusage) -> dict[str, float]:
    """Metrics derived from child resource usage over ``wall_time`` microseconds."""
    cpu_time = usage.user_time + usage.system_time
    pct = cpu_time * 100.0 / wall_time if wall_time else math.nan
    return {
        "max.res.size": usage.max_res_size,
        "user.time": usage.user_time,
        "system.time": usage.system_time,
        "cpu.pct.wall.time": pct,
    }


def _on_timeout(timeout: int) -> None:
    print(f"Timeout of {timeout} seconds exceeded.", file=sys.stderr, flush=True)
    os._exit(1)


def run_test(config: Config) -> dict[str, float]:
    """Run the test command once and measure it; exit on failure."""
    timer = None
    if config.timeout is not None:
        timer = threading.Timer(config.timeout, _on_timeout, args=(config.timeout,))
        timer.daemon = True
        timer.start()
    try:
        start = time.perf_counter_ns()
        before = Rusage.children()
        status = run_cmd(config.run, config.env).wait()
        duration = float((time.perf_counter_ns() - start) // 1000)
        usage = Rusage.children() - before
    finally:
        if timer is not None:
            timer.cancel()

    if status < 0:
        print(
            f"Test was terminated via signal {-status}, so aborting test.\n\nTest Config:\n{config}",
            file=sys.stderr,
        )
        raise SystemExit(1)
    if 0 < status <= 128:
        print(
            f"Test exited with code {status}, so aborting test.\n\nTest Config:\n{config}",
            file=sys.stderr,
        )
        raise SystemExit(status)

    metrics = {"wall.time": duration}
    metrics.update(kernel_metrics(duration, usage))
    return metrics


def run_iteration(config: Config, listener: StatsdListener) -> dict[str, float]:
    """Run one measured iteration in a fresh process and collect its metrics."""
    sub_config = dataclasses.replace(config, env={**config.env, "SIRUN_ITERATION": config.to_yaml()})
    service = run_cmd(sub_config.service, sub_config.env) if sub_config.service is not None else None
    try:
        run_setup(sub_config)
        status = run_cmd(_SELF_COMMAND, sub_config.env).wait()
        if status < 0:
            raise RuntimeError("no exit code")
        if 0 < status <= 128:
            raise SystemExit(status)

        metrics = listener.take_metrics()
        deadline = time.monotonic() + _SETTLE_TIMEOUT
        while "wall.time" not in metrics and time.monotonic() < deadline:
            time.sleep(_SETTLE_POLL)
            metrics.update(listener.take_metrics())

        run_teardown(config)
    finally:
        if service is not None:
            service.kill()
            service.wait()
    return metrics


def run_all_variants(variants: Sequence[str], argv: Sequence[str]) -> None:
    """Run this program once per variant with ``SIRUN_VARIANT`` set."""
    import subprocess

    for variant in variants:
        env = {**os.environ, "SIRUN_VARIANT": variant}
        subprocess.run([*_SELF_COMMAND, *argv], env=env, check=False)


def _format_number(value: float) -> str:
    if value.is_integer():
        return str(int(value))
    return repr(value)


def iteration_main() -> None:
    """Run the test described by ``SIRUN_ITERATION`` and report via statsd."""
    config = Config.from_yaml(os.environ["SIRUN_ITERATION"])
    metrics = run_test(config)
    payload = "".join(
        f"{key}:{_format_number(metrics[key])}|g\n"
        for key in ("max.res.size", "user.time", "system.time", "wall.time", "cpu.pct.wall.time")
    )
    address = ("127.0.0.1", int(os.environ["SIRUN_STATSD_PORT"]))
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
        sock.bind(("127.0.0.1", 0))
        sock.sendto(payload.encode(), address)


def _finite(value: object) -> object:
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, list):
        return [_finite(item) for item in value]
    if isinstance(value, dict):
        return {key: _finite(item) for key, item in value.items()}
    return value


def _run_benchmark(args: list[str]) -> int:
    config = load_config(args[0])
    if config.variants is not None:
        run_all_variants(config.variants, args)
        return 0

    with StatsdListener() as listener:
        iterations = [run_iteration(config, listener) for _ in range(config.iterations)]

    metrics: dict[str, object] = {"iterations": iterations}
    version = os.environ.get("GIT_COMMIT_HASH")
    if version is not None:
        metrics["version"] = version
    if config.name is not None:
        metrics["name"] = config.name
    if config.variant is not None:
        metrics["variant"] = config.variant
    print(json.dumps(_finite(metrics), separators=(",", ":"), ensure_ascii=False), flush=True)
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Run a benchmark configuration, an iteration, or summarize results."""
    args = list(sys.argv[1:] if argv is None else argv)
    try:
        if "SIRUN_ITERATION" in os.environ:
            iteration_main()
            return 0
        if args and args[0] == "--summarize":
            print(summarize(sys.stdin), flush=True)
            return 0
        if not args:
            print("Error: missing file argument", file=sys.stderr)
            return 1
        return _run_benchmark(args)
    except (ConfigError, ScriptError, OSError, ValueError, KeyError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())