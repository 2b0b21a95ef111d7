# Copyright 2026 icecake0141
# SPDX-License-Identifier: Apache-2.0
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# This file was created or modified with the assistance of an AI (Large Language Model).
# Review required for correctness, security, and licensing.

"""
Settings for vtkeys and the ``~/.vtkeys.conf`` file that can hold them.

The file is either INI with a ``[default]`` section or YAML with a
``default:`` mapping. Every value, whether it comes from the file or from
the command line, goes through the same field rules in this module, so a
bad ``esc_gap`` is reported with the field name wherever it was set.

Priority order: CLI args > ~/.vtkeys.conf > hardcoded defaults
"""

import configparser
import logging
import os
from typing import Any, Callable, Dict, Mapping, NamedTuple, Optional

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = os.path.expanduser("~/.vtkeys.conf")

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")
MIN_MAX_BUFFER = 16


def _positive(value: float) -> Optional[str]:
    return None if value > 0 else "must be positive"


def _known_level(value: str) -> Optional[str]:
    return None if value in LOG_LEVELS else f"must be one of {', '.join(LOG_LEVELS)}"


def _buffer_size(value: int) -> Optional[str]:
    return None if value >= MIN_MAX_BUFFER else f"must be at least {MIN_MAX_BUFFER} bytes"


class _Field(NamedTuple):
    kind: type
    check: Optional[Callable[[Any], Optional[str]]] = None
    normalize: Optional[Callable[[Any], Any]] = None


SETTINGS: Dict[str, _Field] = {
    "log_level": _Field(str, _known_level, str.upper),
    "log_file": _Field(str),
    "debug_log": _Field(str),
    "esc_gap": _Field(float, _positive),
    "esc_total": _Field(float, _positive),
    "show_hex": _Field(bool),
    "max_buffer": _Field(int, _buffer_size),
}

_TRUE_WORDS = frozenset(("true", "yes", "1", "on"))
_FALSE_WORDS = frozenset(("false", "no", "0", "off"))


def _to_bool(raw: Any) -> bool:
    word = str(raw).strip().lower()
    if word in _TRUE_WORDS:
        return True
    if word in _FALSE_WORDS:
        return False
    raise ValueError(f"expected true/false, yes/no, 1/0 or on/off, got {raw!r}")


def validate_setting(key: str, raw: Any) -> Any:
    """
    Convert one setting to its type and check it against the field rules.

    Raises:
        ValueError: naming ``key`` when the value has the wrong type or
            is out of range.
    """
    field = SETTINGS[key]
    try:
        if field.kind is bool:
            value = _to_bool(raw)
        elif isinstance(raw, bool):
            # YAML true/false must not pass as 1/0
            raise ValueError(f"expected {field.kind.__name__}, got {raw!r}")
        else:
            value = field.kind(raw)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid value for '{key}': {exc}") from exc
    if field.normalize is not None:
        value = field.normalize(value)
    problem = field.check(value) if field.check is not None else None
    if problem:
        raise ValueError(f"Invalid value for '{key}': {value!r} {problem}")
    return value


def check_escape_timing(esc_gap: float, esc_total: float) -> None:
    """The total wait for a split sequence cannot be shorter than one inter-byte gap."""
    if esc_total < esc_gap:
        raise ValueError(f"'esc_total' ({esc_total}) must not be smaller than 'esc_gap' ({esc_gap})")


def validate_settings(section: Mapping[str, Any], path: str) -> Dict[str, Any]:
    """Validate the settings section of a config file, skipping unknown or empty keys."""
    settings: Dict[str, Any] = {}
    for key, raw in section.items():
        if key not in SETTINGS:
            logger.warning("Unknown config key '%s' in '%s'; ignoring.", key, path)
            continue
        if raw is None:
            logger.warning("Config key '%s' has no value in '%s'; ignoring.", key, path)
            continue
        try:
            settings[key] = validate_setting(key, raw)
        except ValueError as exc:
            raise ValueError(f"{path}: {exc}") from exc
    if "esc_gap" in settings and "esc_total" in settings:
        try:
            check_escape_timing(settings["esc_gap"], settings["esc_total"])
        except ValueError as exc:
            raise ValueError(f"{path}: {exc}") from exc
    return settings


def load_ini_config(path: str) -> Dict[str, Any]:
    """
    Read settings from the ``[default]`` section of an INI file.

    Both ``=`` and ``:`` separate keys from values. Other sections are ignored.

    Raises:
        ValueError: If the file cannot be read or parsed, or holds a bad value.
    """
    parser = configparser.ConfigParser(allow_no_value=True, delimiters=("=", ":"))
    try:
        if not parser.read(path, encoding="utf-8"):
            raise ValueError(f"Config file '{path}' could not be read.")
    except configparser.Error as exc:
        raise ValueError(f"Invalid config file '{path}': {exc}") from exc
    if not parser.has_section("default"):
        return {}
    return validate_settings(dict(parser.items("default")), path)


def load_yaml_config(path: str) -> Dict[str, Any]:
    """
    Read settings from the ``default:`` mapping of a YAML file.

    Requires PyYAML (``pip install vtkeys[yaml]``); ``yaml.safe_load`` is used.

    Raises:
        ImportError: If PyYAML is not installed.
        ValueError: If the file cannot be parsed, is shaped wrongly, or holds a bad value.
    """
    try:
        import yaml  # type: ignore[import-untyped]  # pylint: disable=import-outside-toplevel
    except ImportError as exc:
        raise ImportError("PyYAML is required for YAML config files. Install it with: pip install pyyaml") from exc

    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in config file '{path}': {exc}") from exc
    except OSError as exc:
        raise ValueError(f"Cannot read config file '{path}': {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file '{path}' must hold a mapping with a 'default' key, got {type(data).__name__}.")
    section = data.get("default") or {}
    if not isinstance(section, dict):
        raise ValueError(f"The 'default' section in '{path}' must be a YAML mapping.")
    return validate_settings(section, path)


def _is_yaml_file(path: str) -> bool:
    """INI files open with a ``[section]`` header; anything else is taken as YAML."""
    try:
        with open(path, "r", encoding="utf-8") as fh:
            for line in fh:
                stripped = line.strip()
                if stripped and not stripped.startswith("#"):
                    return not stripped.startswith("[")
    except OSError:
        pass
    return False


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load validated settings from ``path`` (default ``~/.vtkeys.conf``).

    A missing file yields an empty dict.

    Raises:
        ValueError: If the file exists but cannot be parsed or holds a bad value.
        ImportError: If a YAML file is found but PyYAML is not installed.
    """
    if path is None:
        path = DEFAULT_CONFIG_PATH
    if not os.path.exists(path):
        return {}
    if _is_yaml_file(path):
        logger.debug("Loading YAML config from '%s'.", path)
        return load_yaml_config(path)
    logger.debug("Loading INI config from '%s'.", path)
    return load_ini_config(path)
