import json

import pytest

from sirun.summarize import mean, stddev, summarize, summary


def test_mean():
    assert mean([2, 4, 4, 4, 5, 5, 7, 9]) == 5.0


def test_mean_empty_is_nan():
    result = mean([])
    assert str(result) == "nan"


def test_stddev_worked_example():
    assert stddev(5.0, [2, 4, 4, 4, 5, 5, 7, 9]) == 2.0


def test_stddev_constant_is_zero():
    assert stddev(3.0, [3.0, 3.0, 3.0]) == 0.0


def test_summary_statistics():
    iterations = [{"a": 2.0, "b": 1.0}, {"a": 4.0, "b": 1.0}, {"a": 4.0, "b": 1.0},
                  {"a": 4.0, "b": 1.0}, {"a": 5.0}, {"a": 5.0}, {"a": 7.0}, {"a": 9.0}]
    result = summary(iterations)
    assert list(result) == ["a", "b"]
    assert result["a"]["mean"] == 5.0
    assert result["a"]["stddev"] == 2.0
    assert result["a"]["stddev_pct"] == 40.0
    assert result["a"]["min"] == 2.0
    assert result["a"]["max"] == 9.0
    assert result["b"] == {"mean": 1.0, "stddev": 0.0, "stddev_pct": 0.0, "min": 1.0, "max": 1.0}


def test_summary_key_order():
    result = summary([{"x": 1}, {"y": 2, "x": 3}])
    assert list(result) == ["x", "y"]
    assert list(result["x"]) == ["mean", "stddev", "stddev_pct", "min", "max"]


def test_summary_rejects_non_numbers():
    with pytest.raises(TypeError):
        summary([{"a": "text"}])


def test_summary_rejects_non_maps():
    with pytest.raises(TypeError):
        summary([1.0])


def _record(name, variant, iterations, **extra):
    data = {"name": name, "variant": variant, "iterations": iterations}
    data.update(extra)
    return json.dumps(data) + "\n"


def test_summarize_groups_by_name_and_variant():
    lines = [
        _record("bench", "0", [{"wall.time": 10}, {"wall.time": 30}], version="abc"),
        _record("bench", "1", [{"wall.time": 5}]),
        _record("other", "fast", [{"wall.time": 1}]),
    ]
    result = json.loads(summarize(lines))
    assert list(result) == ["bench", "other"]
    assert list(result["bench"]) == ["0", "1"]
    variant0 = result["bench"]["0"]
    assert list(variant0) == ["version", "summary"]
    assert variant0["version"] == "abc"
    assert variant0["summary"]["wall.time"]["mean"] == 20.0
    assert variant0["summary"]["wall.time"]["min"] == 10.0
    assert variant0["summary"]["wall.time"]["max"] == 30.0
    assert result["other"]["fast"]["summary"]["wall.time"]["stddev"] == 0.0


def test_summarize_skips_incomplete_lines():
    lines = [
        "not json\n",
        "\n",
        json.dumps({"variant": "0", "iterations": []}) + "\n",
        json.dumps({"name": "no-variant", "iterations": []}) + "\n",
        json.dumps({"name": "no-iterations", "variant": "0"}) + "\n",
        json.dumps({"name": "bad", "variant": "0", "iterations": [], "flag": True}) + "\n",
    ]
    result = json.loads(summarize(lines))
    assert result == {"no-iterations": {}}


def test_summarize_pretty_output():
    text = summarize([_record("n", "v", [{"m": 2}])])
    assert text.startswith('{\n  "n": {\n    "v": {\n      "summary": {')
    assert '"mean": 2.0' in text


def test_summarize_non_finite_becomes_null():
    result = json.loads(summarize([_record("n", "v", [{"m": 0}, {"m": 0}])]))
    stats = result["n"]["v"]["summary"]["m"]
    assert stats["mean"] == 0.0
    assert stats["stddev_pct"] is None


def test_summarize_empty_input():
    assert summarize([]) == "{}"