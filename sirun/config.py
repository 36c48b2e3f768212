"""Loading and validating benchmark configuration files."""

from __future__ import annotations

import os
import shlex
from dataclasses import asdict, dataclass, field, fields

import yaml

# Placeholder command meaning "no 'run' key has been seen yet".
_UNSET_RUN = ("INIT",)


class ConfigError(ValueError):
    """Raised when a configuration file is malformed or incomplete."""


@dataclass
class Config:
    """A single benchmark test configuration."""

    name: str | None = None
    variant: str | None = None
    service: list[str] | None = None
    setup: list[str] | None = None
    teardown: list[str] | None = None
    run: list[str] = field(default_factory=lambda: list(_UNSET_RUN))
    timeout: int | None = None
    env: dict[str, str] = field(default_factory=dict)
    iterations: int = 1
    instructions: bool = False
    variants: list[str] | None = None

    def to_yaml(self) -> str:
        """Serialize the configuration as a YAML document."""
        return yaml.safe_dump(asdict(self), sort_keys=False)

    @classmethod
    def from_yaml(cls, text: str) -> Config:
        """Build a configuration from a document produced by ``to_yaml``."""
        data = yaml.safe_load(text)
        if not isinstance(data, dict):
            raise ConfigError("serialized config must be a mapping")
        known = {f.name for f in fields(cls)}
        values = {key: value for key, value in data.items() if key in known}
        if values.get("env") is None:
            values.pop("env", None)
        else:
            values["env"] = dict(values["env"])
        return cls(**values)

    def __str__(self) -> str:
        return self.to_yaml()


def _is_uint(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def _shell_command(values: dict, key: str) -> list[str]:
    command = values[key]
    if not isinstance(command, str):
        raise ConfigError(f"'{key}' must be a string")
    try:
        return shlex.split(command)
    except ValueError as exc:
        raise ConfigError(f"'{key}' must be a properly formed shell command") from exc


def _merge_env(env: dict[str, str], config_env: object) -> None:
    if not isinstance(config_env, dict):
        raise ConfigError("env must be an object")
    for name, value in config_env.items():
        if not isinstance(value, str):
            raise ConfigError("env vars must be strings")
        if not isinstance(name, str):
            raise ConfigError("env var names must be strings")
        env[name] = value


def _apply(config: Config, values: object) -> None:
    if not isinstance(values, dict):
        raise ConfigError("invalid json")

    env_name = os.environ.get("SIRUN_NAME")
    if env_name is not None:
        config.name = env_name
    elif "name" in values:
        if not isinstance(values["name"], str):
            raise ConfigError("'name' must be a string")
        config.name = values["name"]

    if "service" in values:
        config.service = _shell_command(values, "service")
    if "run" in values:
        config.run = _shell_command(values, "run")
    if "setup" in values:
        config.setup = _shell_command(values, "setup")
    if "teardown" in values:
        config.teardown = _shell_command(values, "teardown")

    if "timeout" in values:
        if not _is_uint(values["timeout"]):
            raise ConfigError("'timeout' must be a positive integer")
        config.timeout = values["timeout"]

    if "iterations" in values:
        iterations = values["iterations"]
        if not _is_uint(iterations) or iterations == 0:
            raise ConfigError("iterations must be an integer >=1")
        config.iterations = iterations

    if "instructions" in values:
        if not isinstance(values["instructions"], bool):
            raise ConfigError("'instructions' must be a boolean")
        config.instructions = values["instructions"]

    if "env" in values:
        _merge_env(config.env, values["env"])


def _variant_names(variants: object) -> list[str]:
    if isinstance(variants, list):
        return [str(index) for index in range(len(variants))]
    if isinstance(variants, dict):
        names = []
        for key in variants:
            if not isinstance(key, str):
                raise ConfigError("variant keys must be strings")
            names.append(key)
        return names
    raise ConfigError("variants must be an array or object")


def _select_variant(variants: object, key: str) -> object:
    if isinstance(variants, list):
        if not (key.isascii() and key.isdigit()):
            raise ConfigError(f"invalid variant index {key!r}")
        index = int(key)
        if index >= len(variants):
            raise ConfigError(f"variant index {index} does not exist in array")
        return variants[index]
    if isinstance(variants, dict):
        if key not in variants:
            raise ConfigError(f"variant key {key} does not exist in object")
        return variants[key]
    raise ConfigError("variants must be array or object")


def load_config(filename: str | os.PathLike) -> Config:
    """Read a JSON or YAML configuration file and resolve the active variant."""
    with open(filename, encoding="utf-8") as handle:
        text = handle.read()
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(str(exc)) from exc

    config = Config()
    _apply(config, data)

    if "variants" in data:
        variants = data["variants"]
        variant_key = os.environ.get("SIRUN_VARIANT")
        if variant_key is None:
            config.variants = _variant_names(variants)
            return config
        config.variant = variant_key
        _apply(config, _select_variant(variants, variant_key))

    if "".join(config.run) == "".join(_UNSET_RUN):
        raise ConfigError("'run' must be provided")
    return config