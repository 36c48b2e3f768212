[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "sirun"
version = "0.1.11"
description = "A benchmark test runner"
requires-python = ">=3.10"
dependencies = [
    "pyyaml",
]
keywords = ["benchmark", "statsd", "rusage", "performance", "test runner"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Benchmark",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
sirun = "sirun.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["sirun"]

[tool.pytest.ini_options]
addopts = "-ra"
