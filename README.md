# sirun

A benchmark test runner. It runs a command described in a JSON or YAML file,
measures the wall time, CPU time and peak memory of the command, collects any
statsd metrics the command sends, and prints the results as one line of JSON.
It works on POSIX systems.

## Installation

```
pip install sirun
```

## Running a benchmark

```
sirun benchmark.json
```

The same can be done with `python -m sirun.cli benchmark.json`.

A configuration file looks like this:

```json
{
  "name": "my-benchmark",
  "setup": "bash -c 'echo setting up'",
  "run": "node script.js",
  "teardown": "bash -c 'echo cleaning up'",
  "timeout": 10,
  "iterations": 5,
  "env": { "SOME_VAR": "value" },
  "variants": {
    "fast": { "env": { "MODE": "fast" } },
    "slow": { "env": { "MODE": "slow" } }
  }
}
```

Keys:

- `run` (required): command to benchmark, split into words as a shell would.
- `name`: name reported in the output.
- `setup` / `teardown`: commands run before and after each iteration. A
  setup or teardown that exits non-zero is retried once a second, up to 100
  attempts; one killed by a signal aborts the run.
- `service`: a command started before each iteration and killed afterwards.
- `timeout`: whole seconds after which the test is aborted with exit code 1.
- `iterations`: how many times to run the test (an integer of at least 1,
  default 1).
- `instructions`: a boolean; it is validated and kept in the configuration,
  but no instruction count is measured.
- `env`: string environment variables added for every command.
- `variants`: an array or object of partial configurations applied on top of
  the base one. With `SIRUN_VARIANT` unset, sirun runs itself once per variant
  (array indexes `0`, `1`, … or object keys), each printing its own result.

Each iteration runs in a fresh process. If the test exits with a code from 1
to 128, the run stops with that code; if it is killed by a signal, the run
stops with code 1. Exit codes above 128 are not treated as failures.

The output is one JSON object per run. Its `iterations` list holds, for each
iteration, `wall.time`, `user.time` and `system.time` (microseconds),
`max.res.size`, `cpu.pct.wall.time`, and any `name:value|type` lines the test
sent to the UDP port in `SIRUN_STATSD_PORT`. The object also has `name`,
`variant` and `version` when they are set.

### Environment variables

- `SIRUN_NAME`: overrides the configured name.
- `SIRUN_VARIANT`: selects one variant (array index or object key).
- `SIRUN_NO_STDIO`: discard the stdout and stderr of the commands run.
- `SIRUN_SKIP_SETUP`: skip setup and teardown.
- `SIRUN_STATSD_PORT`: UDP port on 127.0.0.1 for the statsd listener (a free
  port is chosen if unset or invalid).
- `GIT_COMMIT_HASH`: reported as `version`.

## Summarizing results

Pipe the newline-delimited JSON output of several runs into:

```
sirun --summarize < results.ndjson
```

This prints a JSON document grouped by name and then variant, with the mean,
population standard deviation, that deviation as a percentage of the mean,
minimum and maximum of each metric across iterations. Lines that are not
JSON, or that lack `name`, `variant` or `iterations`, are skipped. Values that
are not finite are written as `null`.

## Library use

```python
from sirun.config import load_config
from sirun.summarize import summarize, summary

config = load_config("benchmark.json")
print(config)  # the configuration as YAML

with open("results.ndjson") as lines:
    print(summarize(lines))

print(summary([{"wall.time": 10.0}, {"wall.time": 12.0}]))
```

Other pieces: `sirun.statsd.StatsdListener` (a context manager collecting
statsd datagrams) and `parse_statsd`, `sirun.rusage.Rusage.children()` for
child-process resource usage, and `sirun.subproc.run_cmd`, `run_setup` and
`run_teardown`.

## What it does not do

- No hardware instruction counts: the `instructions` key is accepted but no
  `instructions` metric is ever reported.