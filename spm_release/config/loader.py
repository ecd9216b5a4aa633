# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Config loaders: produce a validated, frozen ReleaseConfig.

Two sources are supported:
  1. A YAML file (local runs, `--config`)
  2. GitHub Actions inputs, which the runner exposes as INPUT_<NAME>
     environment variables

Both paths end in the same pydantic validation. If anything goes wrong we
fail immediately with a clear error, before any file is read or uploaded.
"""

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from spm_release.config.schema import ReleaseConfig
from spm_release.exceptions import ConfigLoadError, ConfigValidationError

# action input name -> ReleaseConfig field
ACTION_INPUTS: dict[str, str] = {
    "name": "project_name",
    "github-token": "github_token",
    "platforms": "platforms",
    "asset-name": "asset_name_template",
    "skip-spm": "skip_manifest",
    "manifest-schema": "manifest_schema",
    "description": "description",
    "extension-name": "extension_name",
    "log-level": "log_level",
}

_BOOLEAN_INPUTS: frozenset[str] = frozenset({"skip-spm"})
# Passed through verbatim; every other input is stripped.
_MULTILINE_INPUTS: frozenset[str] = frozenset({"platforms", "description"})
_TRUE_VALUES: frozenset[str] = frozenset({"true", "True", "TRUE"})
_FALSE_VALUES: frozenset[str] = frozenset({"false", "False", "FALSE"})


def _read_yaml_file(config_path: Path) -> dict[str, Any]:
    """
    Read a YAML file and return the parsed dict.

    Raises:
        ConfigLoadError: If the file doesn't exist, isn't readable, or isn't valid YAML.
    """
    if not config_path.exists():
        raise ConfigLoadError(f"Config file not found: {config_path}")

    if not config_path.is_file():
        raise ConfigLoadError(f"Config path is not a file: {config_path}")

    try:
        raw_text = config_path.read_text(encoding="utf-8")
    except OSError as err:
        raise ConfigLoadError(f"Cannot read config file {config_path}: {err}") from err

    try:
        parsed = yaml.safe_load(raw_text)
    except yaml.YAMLError as err:
        raise ConfigLoadError(f"Invalid YAML in {config_path}: {err}") from err

    if not isinstance(parsed, dict):
        raise ConfigLoadError(
            f"Config file must contain a YAML mapping (dict), got {type(parsed).__name__}"
        )

    return parsed


def _validate(raw_data: dict[str, Any], source: str) -> ReleaseConfig:
    try:
        return ReleaseConfig.model_validate(raw_data)
    except ValidationError as err:
        raise ConfigValidationError(f"Config validation failed for {source}:\n{err}") from err


def load_config(config_path: Path, environ: Mapping[str, str] | None = None) -> ReleaseConfig:
    """
    Load and validate a YAML config file.

    The token may be left out of the file, in which case GITHUB_TOKEN from
    the environment is used.

    Raises:
        ConfigLoadError: File I/O or YAML parse failures.
        ConfigValidationError: Schema violations.
    """
    env = os.environ if environ is None else environ
    raw_data = _read_yaml_file(config_path)

    if "github_token" not in raw_data and env.get("GITHUB_TOKEN"):
        raw_data["github_token"] = env["GITHUB_TOKEN"]

    return _validate(raw_data, str(config_path))


def _input_env_name(input_name: str) -> str:
    # Same transformation the Actions runner applies.
    return "INPUT_" + input_name.replace(" ", "_").upper()


def _parse_boolean_input(input_name: str, value: str) -> bool:
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ConfigValidationError(
        f"Input {input_name!r} must be one of true/True/TRUE/false/False/FALSE, got {value!r}"
    )


def load_config_from_inputs(environ: Mapping[str, str] | None = None) -> ReleaseConfig:
    """
    Build a ReleaseConfig from GitHub Actions inputs.

    Empty inputs are treated as unset so action defaults of "" fall through
    to the schema defaults.

    Raises:
        ConfigValidationError: Missing required inputs or invalid values.
    """
    env = os.environ if environ is None else environ
    raw_data: dict[str, Any] = {}

    for input_name, field_name in ACTION_INPUTS.items():
        value = env.get(_input_env_name(input_name), "")
        if not value.strip():
            continue
        if input_name in _BOOLEAN_INPUTS:
            raw_data[field_name] = _parse_boolean_input(input_name, value.strip())
        elif input_name in _MULTILINE_INPUTS:
            raw_data[field_name] = value
        else:
            raw_data[field_name] = value.strip()

    return _validate(raw_data, "action inputs")
