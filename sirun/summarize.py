"""Summary statistics over the iteration metrics of benchmark results."""

from __future__ import annotations

import json
import math
from collections.abc import Iterable, Sequence


def mean(items: Sequence[float]) -> float:
    """Arithmetic mean; NaN for an empty sequence."""
    if not items:
        return math.nan
    return sum(items) / len(items)


def stddev(m: float, items: Sequence[float]) -> float:
    """Population standard deviation of ``items`` around the mean ``m``."""
    return math.sqrt(mean([(x - m) ** 2 for x in items]))


def _ratio(numerator: float, denominator: float) -> float:
    try:
        return numerator / denominator
    except ZeroDivisionError:
        if numerator == 0 or math.isnan(numerator):
            return math.nan
        return math.copysign(math.inf, numerator)


def _as_number(value: object) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError("not an f64")
    return float(value)


def summary(iterations: Iterable[dict]) -> dict[str, dict[str, float]]:
    """Compute mean, stddev, stddev_pct, min and max for each metric."""
    stats: dict[str, list[float]] = {}
    for iteration in iterations:
        if not isinstance(iteration, dict):
            raise TypeError("not a map")
        for key, value in iteration.items():
            stats.setdefault(key, []).append(_as_number(value))

    result: dict[str, dict[str, float]] = {}
    for name, items in stats.items():
        m = mean(items)
        s = stddev(m, items)
        result[name] = {
            "mean": m,
            "stddev": s,
            "stddev_pct": _ratio(s, m) * 100.0,
            "min": min(items, default=math.inf),
            "max": max(items, default=-math.inf),
        }
    return result


class _InvalidMetric(Exception):
    pass


def _metric(value: object) -> object:
    if isinstance(value, str):
        return value
    if isinstance(value, bool) or value is None:
        raise _InvalidMetric
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, list):
        return [_metric(item) for item in value]
    if isinstance(value, dict):
        return {key: _metric(item) for key, item in value.items()}
    raise _InvalidMetric


def _as_string(value: object) -> str:
    if not isinstance(value, str):
        raise TypeError("not a string")
    return value


def _json_ready(value: object) -> object:
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, list):
        return [_json_ready(item) for item in value]
    if isinstance(value, dict):
        return {key: _json_ready(item) for key, item in value.items()}
    return value


def summarize(lines: Iterable[str]) -> str:
    """Turn newline-delimited result records into a pretty JSON summary."""
    result: dict[str, dict[str, dict]] = {}
    for line in lines:
        try:
            data = _metric(json.loads(line))
        except (json.JSONDecodeError, _InvalidMetric):
            continue
        if not isinstance(data, dict):
            continue
        if "name" not in data:
            continue
        name = _as_string(data.pop("name"))
        if "variant" not in data:
            continue
        variant = _as_string(data.pop("variant"))
        name_data = result.setdefault(name, {})
        if "iterations" not in data:
            continue
        iterations = data.pop("iterations")
        if not isinstance(iterations, list):
            raise TypeError("not an array")
        data["summary"] = summary(iterations)
        name_data[variant] = data
    return json.dumps(_json_ready(result), indent=2, ensure_ascii=False)