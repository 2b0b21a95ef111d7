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
# Review for correctness and security.

"""
Command-line interface for vtkeys.

Two modes are offered: an interactive key viewer that puts the terminal in
raw mode and prints every decoded event, and an offline mode that decodes
hex-encoded byte strings given with ``--decode``.
"""

import argparse
import logging
import os
import sys
from typing import Any, Dict, List, Optional, Tuple

from vtkeys.config import LOG_LEVELS, check_escape_timing, load_config, validate_setting
from vtkeys.debug_logger import get_debug_logger, init_debug_logger, shutdown_debug_logger
from vtkeys.input_keys import InputBuffer, read_input, terminal_raw_mode
from vtkeys.keys import EventType, Modifiers
from vtkeys.parser import Result, decode
from vtkeys.sequence import DecodeError

logger = logging.getLogger(__name__)

# Hardcoded defaults for config-overridable fields.
# Applied after config merging for any field still set to None.
_HARDCODED_DEFAULTS: Dict[str, Any] = {
    "log_level": "WARNING",
    "esc_gap": 0.03,
    "esc_total": 0.5,
    "show_hex": False,
    "max_buffer": 4096,
}

# Keys that end the interactive session: q, Ctrl+C, Ctrl+D
_QUIT_KEYS = {(ord("q"), Modifiers.NONE), (ord("c"), Modifiers.CTRL), (ord("d"), Modifiers.CTRL)}


def _configure_logging(log_level: str, log_file: Optional[str]) -> None:
    """Configure logging handlers for CLI execution."""
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        handlers.insert(0, logging.FileHandler(os.path.expanduser(log_file), encoding="utf-8"))
    logging.basicConfig(
        level=getattr(logging, log_level, logging.WARNING),
        format="%(levelname)s %(name)s: %(message)s",
        handlers=handlers,
        force=True,
    )


def _apply_config_to_args(args: argparse.Namespace, config: Dict[str, Any]) -> None:
    """
    Overlay config file values onto a parsed argument namespace.

    Only fields that are still ``None`` (i.e. not explicitly set on the CLI)
    are updated.

    Args:
        args: Namespace returned by ``argparse.ArgumentParser.parse_args()``.
        config: Dictionary of values loaded from the config file.
    """
    for key, value in config.items():
        if hasattr(args, key) and getattr(args, key) is None:
            setattr(args, key, value)


def parse_hex(text: str) -> bytes:
    """
    Parse a hex byte string such as ``1b5b41``, ``1b 5b 41`` or ``0x1b,0x5b``.

    Raises:
        ValueError: If the text is not an even number of hex digits.
    """
    cleaned = text.replace(",", " ").replace("0x", " ").replace("0X", " ")
    return bytes.fromhex("".join(cleaned.split()))


def format_result(raw: bytes, result: Result, show_hex: bool = True) -> str:
    """Render one decode outcome as a single line of text."""
    if result.event is not None:
        text = result.event.describe()
    elif result.n:
        text = "(skipped)"
    else:
        text = "(incomplete)"
    line = f"{text:<40} n={result.n}"
    if show_hex:
        line += f"  {raw.hex(' ')}"
    return line


def decode_all(data: bytes) -> Tuple[List[Tuple[bytes, Result]], bytes]:
    """
    Decode a complete byte string front to back.

    Returns:
        ``(results, remainder)`` where ``remainder`` holds trailing bytes that
        form an incomplete sequence.

    Raises:
        DecodeError: The input contains a malformed sequence.
    """
    debug = get_debug_logger()
    results: List[Tuple[bytes, Result]] = []
    offset = 0
    while offset < len(data):
        result = decode(data[offset:])
        if debug is not None:
            debug.log_decode(data[offset:], result, notes="offline")
        if result.n == 0:
            break
        results.append((data[offset : offset + result.n], result))
        offset += result.n
    return results, data[offset:]


def run_decode(hex_inputs: List[str], show_hex: bool = True) -> int:
    """Decode hex strings given on the command line. Returns the exit status."""
    status = 0
    for text in hex_inputs:
        try:
            data = parse_hex(text)
        except ValueError as exc:
            print(f"{text}: invalid hex input: {exc}", file=sys.stderr)
            status = 1
            continue
        try:
            results, remainder = decode_all(data)
        except DecodeError as exc:
            print(f"{text}: {exc} (at byte {exc.offset})", file=sys.stderr)
            status = 1
            continue
        for raw, result in results:
            print(format_result(raw, result, show_hex))
        if remainder:
            print(format_result(remainder, Result(None, 0), show_hex))
    return status


def _is_alt_echo(result: Result, previous: Optional[Result]) -> bool:
    """True for the plain key decoded from the same bytes right after an Alt+key."""
    if previous is None or previous.event is None or previous.event.key is None:
        return False
    key = result.event.key if result.event is not None else None
    prev_key = previous.event.key
    return key is not None and prev_key.alt and key.codepoint == prev_key.codepoint and not key.mods


def _is_quit(result: Result, previous: Optional[Result] = None) -> bool:
    event = result.event
    if event is None or event.type is not EventType.KEY_PRESS or event.key is None:
        return False
    if _is_alt_echo(result, previous):
        return False
    return (event.key.codepoint, event.key.mods) in _QUIT_KEYS


def run_interactive(args: argparse.Namespace) -> int:
    """Show decoded key events until a quit key is pressed. Returns the exit status."""
    fd = sys.stdin.fileno()
    if not os.isatty(fd):
        print("Error: interactive mode needs a terminal on stdin (use --decode for offline input).", file=sys.stderr)
        return 1

    buffer = InputBuffer(max_buffer=args.max_buffer)
    print("vtkeys - press keys to see how they decode; q, Ctrl+C or Ctrl+D quits.")
    with terminal_raw_mode(fd):
        previous: Optional[Result] = None
        while True:
            for raw, result in read_input(fd, buffer, timeout=0.5, gap=args.esc_gap, total=args.esc_total):
                sys.stdout.write(format_result(raw, result, args.show_hex) + "\r\n")
                sys.stdout.flush()
                if _is_quit(result, previous):
                    return 0
                previous = result


def handle_options() -> argparse.Namespace:
    """Parse and validate command-line arguments."""
    parser = argparse.ArgumentParser(
        description="vtkeys - Decode terminal keyboard and focus input sequences",
    )
    parser.add_argument(
        "-d",
        "--decode",
        nargs="+",
        metavar="HEX",
        default=None,
        help="Decode hex-encoded input (e.g. 1b5b313b3541) instead of reading the terminal",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        default=None,
        choices=LOG_LEVELS,
        help="Logging level for decoder diagnostics (default: WARNING)",
    )
    parser.add_argument(
        "--log-file",
        type=str,
        default=None,
        help="Optional log file path for persistent logging",
    )
    parser.add_argument(
        "--debug-log",
        type=str,
        default=None,
        help="Write a JSONL record of every decode to this file",
    )
    parser.add_argument(
        "--esc-gap",
        type=float,
        default=None,
        help="Seconds to wait between bytes of a split escape sequence (default: 0.03)",
    )
    parser.add_argument(
        "--esc-total",
        type=float,
        default=None,
        help="Maximum seconds spent completing one escape sequence (default: 0.5)",
    )
    parser.add_argument(
        "-x",
        "--show-hex",
        action="store_true",
        default=None,
        help="Show the raw bytes of each event in interactive mode",
    )
    parser.add_argument(
        "--max-buffer",
        type=int,
        default=None,
        help="Discard unterminated input beyond this many bytes (default: 4096)",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Config file path (default: ~/.vtkeys.conf)",
    )
    parser.add_argument(
        "--no-config",
        action="store_true",
        default=False,
        help="Skip loading the config file",
    )

    args = parser.parse_args()

    # Load and apply config file unless --no-config was given
    if not args.no_config:
        try:
            config = load_config(args.config)
            _apply_config_to_args(args, config)
        except (ValueError, ImportError) as exc:
            parser.error(str(exc))

    # Apply hardcoded defaults for any config-overridable field still at None
    for field, default in _HARDCODED_DEFAULTS.items():
        if getattr(args, field, None) is None:
            setattr(args, field, default)

    # Same field rules as the config file, for values given on the command line
    try:
        for field in ("esc_gap", "esc_total", "max_buffer"):
            setattr(args, field, validate_setting(field, getattr(args, field)))
        check_escape_timing(args.esc_gap, args.esc_total)
    except ValueError as exc:
        parser.error(str(exc))
    return args


def run(args: argparse.Namespace) -> int:
    """Run vtkeys with parsed arguments. Returns the exit status."""
    _configure_logging(getattr(args, "log_level", "WARNING"), getattr(args, "log_file", None))
    if args.debug_log:
        init_debug_logger(os.path.expanduser(args.debug_log))
    try:
        if args.decode:
            return run_decode(args.decode, show_hex=True)
        try:
            return run_interactive(args)
        except KeyboardInterrupt:
            return 130
    finally:
        debug = get_debug_logger()
        if debug is not None:
            logger.info("Debug log %s: %s", debug.log_file_path, debug.summary())
        shutdown_debug_logger()


def main() -> None:
    """Main entrypoint for the CLI - parses arguments and runs the application."""
    args = handle_options()
    sys.exit(run(args))
