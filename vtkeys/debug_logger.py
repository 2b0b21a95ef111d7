#!/usr/bin/env python3
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
Debug logging of raw terminal input and decoder results.

Each decode performed by the key viewer can be written as one JSON line
holding the raw bytes (hex and repr), what the decoder made of them, and
timing data from escape-sequence buffering. The file is meant for offline
analysis of terminals that send unexpected sequences.
"""

import json
import os
import sys
import termios
import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from vtkeys.parser import Result


class DecodeDebugLogger:
    """
    Logger for capturing raw input and decode results.

    This logger captures:
    - Raw byte sequences (hex representation)
    - Timing information (monotonic and wall clock)
    - Terminal state (tty mode, TERM)
    - Decode results and errors
    """

    def __init__(self, log_file_path: str = "vtkeys_debug.log"):
        """
        Initialize debug logger.

        Args:
            log_file_path: Path to log file for writing debug events
        """
        self.log_file_path = log_file_path
        self.session_start = time.monotonic()
        self.record_count = 0
        self.log_file = None
        self.stats: Dict[str, int] = {"decoded": 0, "skipped": 0, "incomplete": 0, "errors": 0}

    def start_session(self) -> None:
        """Start a new debug logging session."""
        try:
            # pylint: disable=consider-using-with
            self.log_file = open(self.log_file_path, "w", encoding="utf-8")
            self._write_session_header()
        except (IOError, OSError) as e:
            print(f"Warning: Could not open debug log file: {e}", file=sys.stderr)
            self.log_file = None

    def _write_session_header(self) -> None:
        """Write session metadata to log file."""
        if not self.log_file:
            return

        header: Dict[str, Any] = {
            "event_type": "SESSION_START",
            "timestamp_utc": datetime.now(timezone.utc).isoformat(),
            "timestamp_monotonic": time.monotonic(),
            "python_version": sys.version,
            "platform": sys.platform,
            "terminal_type": os.environ.get("TERM", "unknown"),
            "term_program": os.environ.get("TERM_PROGRAM", ""),
            "ssh_session": "SSH_CONNECTION" in os.environ or "SSH_CLIENT" in os.environ,
            "log_format_version": "1.0",
        }

        if sys.stdin.isatty():
            try:
                attrs = termios.tcgetattr(sys.stdin.fileno())
                header["terminal_state"] = {
                    "iflag": attrs[0],
                    "oflag": attrs[1],
                    "cflag": attrs[2],
                    "lflag": attrs[3],
                }
            except (termios.error, AttributeError):
                header["terminal_state"] = "unavailable"
        else:
            header["terminal_state"] = "not_a_tty"

        self._write_event(header)

    def log_decode(self, raw_bytes: bytes, result: Result, notes: str = "") -> None:
        """
        Log one decode call.

        Args:
            raw_bytes: Buffer passed to decode()
            result: Result returned by decode()
            notes: Additional notes about this event
        """
        if result.event is not None:
            outcome = "decoded"
        elif result.n:
            outcome = "skipped"
        else:
            outcome = "incomplete"
        self.stats[outcome] += 1

        event = {
            "event_type": "DECODE",
            "timestamp_monotonic": time.monotonic(),
            "elapsed_seconds": time.monotonic() - self.session_start,
            "raw_bytes_hex": raw_bytes.hex(),
            "raw_bytes_repr": repr(raw_bytes),
            "consumed": result.n,
            "outcome": outcome,
            "event": result.event.describe() if result.event is not None else None,
            "notes": notes,
        }
        self.record_count += 1
        self._write_event(event)

    def log_decode_error(self, raw_bytes: bytes, error: Exception) -> None:
        """Log a decode call that raised."""
        self.stats["errors"] += 1
        event = {
            "event_type": "DECODE_ERROR",
            "timestamp_monotonic": time.monotonic(),
            "raw_bytes_hex": raw_bytes.hex(),
            "raw_bytes_repr": repr(raw_bytes),
            "error_type": type(error).__name__,
            "error": str(error),
            "offset": getattr(error, "offset", None),
        }
        self.record_count += 1
        self._write_event(event)

    def log_escape_buffering(self, meta: Dict[str, Any]) -> None:
        """
        Log timing metadata returned by read_sequence_after_esc().

        Args:
            meta: Metadata dictionary with monotonic timestamps and per-byte data
        """
        per_byte = meta.get("per_byte", [])
        event = {
            "event_type": "ESCAPE_BUFFERING",
            "timestamp_monotonic": time.monotonic(),
            "elapsed_ms": round(meta.get("elapsed", 0.0) * 1000, 2),
            "byte_count": len(per_byte),
            "sequence_hex": "".join(entry[0] for entry in per_byte),
            "inter_byte_gaps_ms": [round((per_byte[i][1] - per_byte[i - 1][1]) * 1000, 2) for i in range(1, len(per_byte))],
        }
        self.record_count += 1
        self._write_event(event)

    def _write_event(self, event: Dict[str, Any]) -> None:
        """Write event to log file as JSON."""
        if self.log_file:
            try:
                self.log_file.write(json.dumps(event) + "\n")
                self.log_file.flush()
            except (IOError, OSError):
                pass  # Silently fail to avoid disrupting the input loop

    def summary(self) -> str:
        """One-line summary of the session so far."""
        return (
            f"{self.stats['decoded']} decoded, {self.stats['skipped']} skipped, "
            f"{self.stats['incomplete']} incomplete, {self.stats['errors']} errors"
        )

    def close(self) -> None:
        """Close the debug logging session."""
        if self.log_file:
            self._write_event(
                {
                    "event_type": "SESSION_END",
                    "timestamp_utc": datetime.now(timezone.utc).isoformat(),
                    "timestamp_monotonic": time.monotonic(),
                    "total_events": self.record_count,
                    "stats": dict(self.stats),
                }
            )
            self.log_file.close()
            self.log_file = None


# Global debug logger instance (None when debugging is disabled)
# pylint: disable=invalid-name
_debug_logger: Optional[DecodeDebugLogger] = None


def init_debug_logger(log_file_path: str = "vtkeys_debug.log") -> None:
    """
    Initialize global debug logger.

    Args:
        log_file_path: Path to debug log file
    """
    # pylint: disable=global-statement
    global _debug_logger
    _debug_logger = DecodeDebugLogger(log_file_path)
    _debug_logger.start_session()


def get_debug_logger() -> Optional[DecodeDebugLogger]:
    """Get the global debug logger instance."""
    return _debug_logger


def shutdown_debug_logger() -> None:
    """Shutdown and close debug logger."""
    # pylint: disable=global-statement
    global _debug_logger
    if _debug_logger:
        _debug_logger.close()
        _debug_logger = None


def is_debug_enabled() -> bool:
    """Check if debug logging is enabled."""
    return _debug_logger is not None
