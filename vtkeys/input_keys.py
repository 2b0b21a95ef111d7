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
Keyboard input reading on top of the vtkeys decoder.

This module owns the byte buffer that ``decode()`` works on: it appends
bytes as they arrive, drops exactly what the decoder consumed, and keeps an
incomplete tail around until more input shows up. It also provides the raw
mode context manager and an adapter for keys read with the readchar library.
"""

import contextlib
import logging
import os
import select
import sys
import termios
import tty
from typing import Generator, Iterator, List, Optional, Tuple

import readchar

from vtkeys.debug_logger import get_debug_logger
from vtkeys.escape_buffering import ESC, T_GAP_SECONDS, T_TOTAL_SECONDS, read_sequence_after_esc
from vtkeys.keys import Event
from vtkeys.parser import Result, decode
from vtkeys.sequence import DecodeError

logger = logging.getLogger(__name__)

DEFAULT_MAX_BUFFER = 4096
READ_CHUNK_SIZE = 1024


@contextlib.contextmanager
def terminal_raw_mode(fd: Optional[int] = None) -> Generator[None, None, None]:
    """Context manager that sets a terminal file descriptor to raw mode and restores it on exit.

    This ensures terminal state is properly restored even when a signal (e.g. SIGINT)
    interrupts the caller, preventing the shell from being left in an unusable state.

    Args:
        fd: Terminal file descriptor to configure.  Defaults to ``sys.stdin.fileno()``.

    Yields:
        Nothing – use as a plain ``with`` block.

    Example::

        with terminal_raw_mode():
            events = read_events(sys.stdin.fileno(), buffer)
    """
    if fd is None:
        fd = sys.stdin.fileno()
    try:
        old_settings = termios.tcgetattr(fd)
    except termios.error:
        # Not a real terminal (e.g. a pipe or test mock) – skip raw-mode setup.
        yield
        return
    try:
        tty.setraw(fd)
        yield
    finally:
        termios.tcsetattr(fd, termios.TCSADRAIN, old_settings)


class InputBuffer:
    """
    Growable byte buffer that turns terminal input into events.

    ``decode()`` is stateless, so a sequence split across reads is handled
    here: when the decoder reports that it needs more bytes, the same
    prefix is kept and retried once more input has been fed.
    """

    def __init__(self, max_buffer: int = DEFAULT_MAX_BUFFER) -> None:
        self.max_buffer = max_buffer
        self._buf = bytearray()

    def __len__(self) -> int:
        return len(self._buf)

    @property
    def pending(self) -> bytes:
        """Bytes still waiting for the rest of their sequence."""
        return bytes(self._buf)

    def feed(self, data: bytes) -> None:
        self._buf.extend(data)

    def results(self) -> Iterator[Tuple[bytes, Result]]:
        """
        Decode the buffer until it is empty or ends inside a sequence.

        Yields:
            ``(raw, result)`` for every decode that consumed bytes, where
            ``raw`` is the consumed prefix. Malformed sequences are logged
            and discarded up to the offending byte instead.
        """
        debug = get_debug_logger()
        while self._buf:
            snapshot = bytes(self._buf)
            try:
                result = decode(snapshot)
            except DecodeError as exc:
                logger.warning("Discarding %d byte(s) of malformed input: %s", exc.offset + 1, exc)
                if debug is not None:
                    debug.log_decode_error(snapshot, exc)
                del self._buf[: exc.offset + 1]
                continue
            if debug is not None:
                debug.log_decode(snapshot, result)
            if result.n == 0:
                break
            del self._buf[: result.n]
            yield snapshot[: result.n], result

        if len(self._buf) > self.max_buffer:
            logger.warning("Discarding %d byte(s) of unterminated input", len(self._buf))
            self._buf.clear()

    def events(self) -> Iterator[Event]:
        """Yield every complete event in the buffer, skipping unsupported sequences."""
        for _, result in self.results():
            if result.event is not None:
                yield result.event

    def flush(self) -> int:
        """
        Drop an incomplete tail that will never be completed.

        Returns:
            Number of bytes discarded.
        """
        dropped = len(self._buf)
        if dropped:
            logger.debug("Flushing incomplete input %r", bytes(self._buf))
            self._buf.clear()
        return dropped


def _gather_after_esc(prefix: bytes, fd: int, gap: float, total: float) -> bytes:
    gathered, meta = read_sequence_after_esc(prefix, fd, gap=gap, total=total)
    debug = get_debug_logger()
    if debug is not None:
        debug.log_escape_buffering(meta)
    return gathered


def read_input(
    fd: int,
    buffer: InputBuffer,
    timeout: float = 0.0,
    gap: float = T_GAP_SECONDS,
    total: float = T_TOTAL_SECONDS,
) -> List[Tuple[bytes, Result]]:
    """
    Read whatever input is available on ``fd`` and decode it.

    When a read ends on ESC, or inside an escape sequence, the following
    bytes are gathered with a short inter-byte gap so that a sequence split
    across reads is not mistaken for a bare Escape key followed by text.

    Args:
        fd: File descriptor to read from.
        buffer: Buffer carrying incomplete input between calls.
        timeout: How long to wait for the first byte.
        gap: Inter-byte gap used while completing a sequence.
        total: Hard cap on the time spent completing a sequence.

    Returns:
        ``(raw, result)`` pairs in input order (possibly empty). An empty
        read (EOF) or a quiet timeout flushes any incomplete tail.
    """
    ready, _, _ = select.select([fd], [], [], timeout)
    if not ready:
        if len(buffer):
            # Nothing more arrived within the timeout; the tail is final.
            buffer.flush()
        return []

    chunk = os.read(fd, READ_CHUNK_SIZE)
    if not chunk:
        buffer.flush()
        return []

    if chunk.endswith(ESC):
        chunk = chunk[:-1] + _gather_after_esc(ESC, fd, gap, total)

    buffer.feed(chunk)
    decoded = list(buffer.results())

    pending = buffer.pending
    if pending:
        # The read stopped inside a sequence; wait briefly for the remainder.
        buffer.feed(_gather_after_esc(pending, fd, gap, total)[len(pending) :])
        decoded.extend(buffer.results())
    return decoded


def read_events(
    fd: int,
    buffer: InputBuffer,
    timeout: float = 0.0,
    gap: float = T_GAP_SECONDS,
    total: float = T_TOTAL_SECONDS,
) -> List[Event]:
    """Like ``read_input`` but returns only the decoded events."""
    return [result.event for _, result in read_input(fd, buffer, timeout, gap, total) if result.event is not None]


def decode_readchar_key(key_value: str) -> Optional[Event]:
    """
    Map a string returned by ``readchar.readkey()`` to an Event.

    readchar already groups escape sequences into a single string such as
    ``"\\x1b[A"``, so the first decoded event is the whole key. Characters
    outside ASCII are reported byte-wise as the decoder does not assemble UTF-8.

    Args:
        key_value: The key string returned by readchar.readkey()

    Returns:
        The decoded Event, or None for an empty or unsupported key.
    """
    if not key_value:
        return None
    try:
        result = decode(key_value.encode("utf-8", errors="surrogateescape"))
    except DecodeError as exc:
        logger.warning("Could not decode readchar key %r: %s", key_value, exc)
        return None
    return result.event


def read_event_readchar() -> Optional[Event]:
    """
    Read one key with readchar if input is available.

    Returns:
        The decoded Event, or None if no input is ready or stdin is not a TTY.
    """
    if not sys.stdin.isatty():
        return None

    ready, _, _ = select.select([sys.stdin], [], [], 0)
    if not ready:
        return None

    return decode_readchar_key(readchar.readkey())
