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
Decoder for raw terminal input bytes.

``decode(data)`` scans ``data`` from the start and returns at most one event
together with the number of bytes the caller should drop. The parser only
understands what terminals *send* (keys, focus reports), and is not a general
purpose VT parser.

The caller owns the buffer:

- ``Result(event, n)`` with ``n > 0``: drop ``n`` bytes, then decode again.
  ``event`` may be ``None`` for a sequence that was recognised but is not
  supported; it should simply be skipped.
- ``Result(None, 0)``: the buffer ends inside a sequence. Keep the bytes,
  append more input, and decode the same prefix again.

Example::

    result = decode(b"\\x1b[1;5A")
    result.n          # 6
    result.event.key  # Key(codepoint=keys.UP, mods=Modifiers.CTRL)
"""

import enum
import logging
from dataclasses import dataclass
from typing import Optional, Union

from vtkeys import keys
from vtkeys.keys import Event, Key, Modifiers
from vtkeys.sequence import SequenceScratch
from vtkeys.tables import CSI_FINAL_KEYS, PASTE_CODES, SS3_KEYS, TILDE_KEYS

logger = logging.getLogger(__name__)

ESC = 0x1B
BEL = 0x07

BytesLike = Union[bytes, bytearray, memoryview]


class ParseState(enum.Enum):
    """States of the input automaton."""

    GROUND = "ground"
    ESCAPE = "escape"
    CSI = "csi"
    SS3 = "ss3"
    OSC = "osc"
    DCS = "dcs"
    SOS = "sos"
    PM = "pm"
    APC = "apc"


# Byte following ESC -> state it introduces
_INTRODUCERS = {
    ord("O"): ParseState.SS3,
    ord("P"): ParseState.DCS,
    ord("X"): ParseState.SOS,
    ord("["): ParseState.CSI,
    ord("]"): ParseState.OSC,
    ord("^"): ParseState.PM,
    ord("_"): ParseState.APC,
}

_STRING_STATES = frozenset((ParseState.OSC, ParseState.DCS, ParseState.SOS, ParseState.PM, ParseState.APC))


@dataclass(frozen=True)
class Result:
    """Outcome of one ``decode`` call."""

    event: Optional[Event]
    n: int


INCOMPLETE = Result(None, 0)


def _ground_key(byte: int) -> Key:
    if byte == 0x00:
        return Key(ord("@"), Modifiers.CTRL)
    if 0x01 <= byte <= 0x1A:
        return Key(byte + 0x60, Modifiers.CTRL)
    if byte == 0x7F:
        return Key(keys.BACKSPACE)
    # Printable ASCII and everything else pass through as-is; multi-byte
    # UTF-8 is not assembled here.
    return Key(byte)


def _resolve_key(codepoint: int, seq: SequenceScratch) -> Key:
    """
    Interpret the collected parameters of a dispatched CSI sequence.

    Field 0 is the key itself; its sub-parameters (if any) carry the shifted
    codepoint and then the base-layout codepoint. Field 1 is the modifier
    mask plus one. Later fields are ignored.
    """
    mods = Modifiers.NONE
    shifted: Optional[int] = None
    base_layout: Optional[int] = None

    idx = 0
    field = 0
    while idx < seq.param_count:
        if field == 0:
            # a trailing ':' flags a slot that never received a value
            if idx + 1 < seq.param_count and seq.is_sub(idx + 1):
                idx += 1
                # an empty shifted slot (e.g. "97::98u") still leaves room for the base layout
                if not seq.is_empty(idx):
                    shifted = seq.params[idx]
                if idx + 1 < seq.param_count and seq.is_sub(idx + 1):
                    idx += 1
                    base_layout = seq.params[idx]
        elif field == 1:
            value = seq.params[idx]
            if value > 0:
                mods = Modifiers((value - 1) & 0xFF)
        else:
            break
        field += 1
        idx += 1

    return Key(codepoint, mods, shifted, base_layout)


def _dispatch_csi(data: BytesLike, seq: SequenceScratch, start: int, i: int) -> Result:
    """Resolve a CSI sequence whose final byte sits at ``data[i]``."""
    seq.finish(i)
    final = data[i]

    if final == ord("I"):
        return Result(Event.focus_in(), i + 1)
    if final == ord("O"):
        return Result(Event.focus_out(), i + 1)

    if final == ord("~"):
        if not seq.param_count:
            logger.warning("unhandled csi: CSI %r", bytes(data[start + 1 : i + 1]))
            return Result(None, i)
        code = seq.params[0]
        if code in PASTE_CODES:
            logger.debug("ignoring bracketed paste marker: CSI %d~", code)
            return Result(None, i + 1)
        codepoint = TILDE_KEYS.get(code)
        if codepoint is None:
            logger.warning("unhandled csi: CSI %r", bytes(data[start + 1 : i + 1]))
            return Result(None, i)
    elif final == ord("u"):
        if seq.private_indicator is not None:
            # keyboard protocol query response (CSI ? flags u)
            logger.warning("unhandled csi: CSI %r", bytes(data[start + 1 : i + 1]))
            return Result(None, i + 1)
        if not seq.param_count:
            logger.warning("unhandled csi: CSI %r", bytes(data[start + 1 : i + 1]))
            return Result(None, i)
        codepoint = seq.params[0]
    else:
        codepoint = CSI_FINAL_KEYS.get(final)
        if codepoint is None:
            logger.warning("unhandled csi: CSI %r", bytes(data[start + 1 : i + 1]))
            return Result(None, i)

    return Result(Event.key_press(_resolve_key(codepoint, seq)), i + 1)


def decode(data: BytesLike) -> Result:
    """
    Decode the first input event in ``data``.

    Args:
        data: Raw bytes read from the terminal.

    Returns:
        Result holding the event (or ``None``) and the number of bytes to drop.

    Raises:
        ParameterValueError: A CSI parameter does not fit in 16 bits.
        ParameterOverflowError: A CSI sequence has too many parameters or digits.
    """
    length = len(data)
    state = ParseState.GROUND
    seq = SequenceScratch()
    start = 0

    for i in range(length):
        b = data[i]

        if state is ParseState.GROUND:
            if b == ESC:
                # A lone trailing ESC is taken as the Escape key; reads are
                # large enough that a split right after ESC is unlikely.
                if i == length - 1:
                    return Result(Event.key_press(Key(keys.ESCAPE)), i + 1)
                state = ParseState.ESCAPE
                continue
            return Result(Event.key_press(_ground_key(b)), i + 1)

        if state is ParseState.ESCAPE:
            seq = SequenceScratch()
            start = i
            next_state = _INTRODUCERS.get(b)
            if next_state is None:
                return Result(Event.key_press(Key(b, Modifiers.ALT)), i)
            state = next_state
            continue

        if state is ParseState.SS3:
            codepoint = SS3_KEYS.get(b)
            if codepoint is None:
                logger.warning("unhandled ss3: %02x", b)
                return Result(None, i)
            return Result(Event.key_press(Key(codepoint)), i + 1)

        if state is ParseState.CSI:
            if b < 0x20:
                # C0 controls inside CSI are ignored
                continue
            if b < 0x30:
                seq.intermediate = b
            elif b < 0x3A:
                seq.add_digit(b, i)
            elif b == 0x3B:
                seq.separate(i)
            elif b == 0x3A:
                seq.separate(i, sub=True)
            elif b < 0x40:
                seq.private_indicator = b
            else:
                return _dispatch_csi(data, seq, start, i)
            continue

        if state in _STRING_STATES:
            # Payloads are skipped, not interpreted. ST is ESC \, and OSC also accepts BEL.
            if b == 0x5C and i - 1 > start and data[i - 1] == ESC:
                logger.debug("skipped %s string of %d bytes", state.value, i + 1)
                return Result(None, i + 1)
            if b == BEL and state is ParseState.OSC:
                logger.debug("skipped %s string of %d bytes", state.value, i + 1)
                return Result(None, i + 1)

    return INCOMPLETE
