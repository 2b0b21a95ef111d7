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
ESC-aware buffering helper for robust escape sequence reconstruction.

When a read ends on ESC (b'\x1b'), call read_sequence_after_esc(first_byte, fd)
to gather subsequent bytes.

This helper uses select.select with a small inter-byte gap and a hard cap
to handle split escape sequences in VSCode→WSL2, SSH, and similar environments.
Completeness is decided by the decoder itself: a buffer is complete once
``decode()`` consumes something from it.
"""

import logging
import os
import select
from time import monotonic, time
from typing import Any, Dict, Tuple

from vtkeys.parser import decode
from vtkeys.sequence import DecodeError

logger = logging.getLogger(__name__)

ESC = b"\x1b"
T_GAP_SECONDS = 0.03  # 30 ms inter-byte gap
T_TOTAL_SECONDS = 0.5  # 500 ms max accumulation


def looks_like_complete_sequence(buf: bytes) -> bool:
    """
    Determine if a byte buffer holds at least one complete input sequence.

    A lone ESC is reported as incomplete here even though the decoder would
    treat it as the Escape key: while bytes may still be arriving, the rest
    of the sequence is given the benefit of the doubt.

    Args:
        buf: Byte buffer potentially containing an escape sequence

    Returns:
        True if the decoder can consume bytes from the buffer, False otherwise
    """
    if not buf or buf == ESC:
        return False
    try:
        return decode(buf).n > 0
    except DecodeError:
        # Malformed but finished; the caller's decode will report it.
        return True


def read_sequence_after_esc(
    first_byte: bytes,
    stdin_fd: int,
    gap: float = T_GAP_SECONDS,
    total: float = T_TOTAL_SECONDS,
) -> Tuple[bytes, Dict[str, Any]]:
    """
    Read and buffer bytes after an initial ESC to reconstruct escape sequences.

    Waits for additional bytes with a short inter-byte gap timeout and a hard
    maximum accumulation time. This handles cases where escape sequence bytes
    arrive split across multiple reads.

    Args:
        first_byte: The initial ESC byte, or an incomplete sequence starting with ESC
        stdin_fd: File descriptor for stdin
        gap: Inter-byte gap timeout in seconds
        total: Maximum accumulation time in seconds

    Returns:
        Tuple of (complete_sequence, metadata_dict) where:
        - complete_sequence: All bytes read including the initial ESC
        - metadata_dict: diagnostic information with timing data

    Metadata includes:
        - start_monotonic: Start time (monotonic clock)
        - end_monotonic: End time (monotonic clock)
        - elapsed: Total elapsed time in seconds
        - per_byte: List of (hex, ts_monotonic, ts_utc) for each byte
    """
    assert first_byte.startswith(ESC), f"Expected ESC byte, got {first_byte!r}"

    start_m = monotonic()
    start_utc = time()
    buf = bytearray()
    buf.extend(first_byte)
    per_byte = [(format(b, "02x"), start_m, start_utc) for b in first_byte]

    while monotonic() - start_m < total:
        rlist, _, _ = select.select([stdin_fd], [], [], gap)

        if not rlist:
            # Timeout - no more bytes available
            break

        try:
            chunk = os.read(stdin_fd, 1024)
        except OSError as exc:
            logger.debug("Read error while buffering escape sequence: %s", exc)
            break

        if not chunk:
            # EOF - stop buffering
            break

        # All bytes in a chunk share the timestamp of the read() that returned them.
        ts_m = monotonic()
        ts_utc = time()
        buf.extend(chunk)
        for b in chunk:
            per_byte.append((format(b, "02x"), ts_m, ts_utc))

        if looks_like_complete_sequence(bytes(buf)):
            break

    end_m = monotonic()

    meta = {
        "start_monotonic": start_m,
        "end_monotonic": end_m,
        "elapsed": end_m - start_m,
        "per_byte": per_byte,
    }

    logger.debug(
        "esc_sequence_buffering elapsed_ms=%.2f byte_count=%d sequence_hex=%s",
        (end_m - start_m) * 1000,
        len(per_byte),
        buf.hex(),
    )

    return (bytes(buf), meta)
