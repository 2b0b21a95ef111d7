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
Key and event vocabulary produced by the vtkeys decoder.

Codepoints are plain integers. Printable keys use their Unicode scalar value;
keys without a character use the private-use-area values defined by the
Kitty keyboard protocol so that ``CSI <codepoint> u`` reports map directly
onto these constants.
"""

import enum
from dataclasses import dataclass
from typing import Dict, Optional


class Modifiers(enum.IntFlag):
    """Modifier bits as encoded by xterm/Kitty (parameter value minus one)."""

    NONE = 0
    SHIFT = 1
    ALT = 2
    CTRL = 4
    SUPER = 8
    HYPER = 16
    META = 32
    CAPS_LOCK = 64
    NUM_LOCK = 128


TAB = 0x09
ENTER = 0x0D
ESCAPE = 0x1B
SPACE = 0x20
BACKSPACE = 0x7F

INSERT = 57348
DELETE = 57349
LEFT = 57350
RIGHT = 57351
UP = 57352
DOWN = 57353
PAGE_UP = 57354
PAGE_DOWN = 57355
HOME = 57356
END = 57357

F1 = 57364
F2 = 57365
F3 = 57366
F4 = 57367
F5 = 57368
F6 = 57369
F7 = 57370
F8 = 57371
F9 = 57372
F10 = 57373
F11 = 57374
F12 = 57375

KP_BEGIN = 57427

_KEY_NAMES: Dict[int, str] = {
    TAB: "tab",
    ENTER: "enter",
    ESCAPE: "escape",
    SPACE: "space",
    BACKSPACE: "backspace",
    INSERT: "insert",
    DELETE: "delete",
    LEFT: "left",
    RIGHT: "right",
    UP: "up",
    DOWN: "down",
    PAGE_UP: "page_up",
    PAGE_DOWN: "page_down",
    HOME: "home",
    END: "end",
    KP_BEGIN: "kp_begin",
}
_KEY_NAMES.update({F1 + i: f"f{i + 1}" for i in range(12)})


def key_name(codepoint: int) -> str:
    """
    Return a readable name for a codepoint.

    Symbolic keys use their lowercase name (``"up"``, ``"f5"``); other
    printable codepoints are returned as the character itself, and anything
    else is rendered as ``U+XXXX``.
    """
    name = _KEY_NAMES.get(codepoint)
    if name is not None:
        return name
    if 0x20 < codepoint <= 0x10FFFF and not 0xE000 <= codepoint <= 0xF8FF and chr(codepoint).isprintable():
        return chr(codepoint)
    return f"U+{codepoint:04X}"


@dataclass(frozen=True)
class Key:
    """A single key press as reported by the terminal."""

    codepoint: int
    mods: Modifiers = Modifiers.NONE
    shifted_codepoint: Optional[int] = None
    base_layout_codepoint: Optional[int] = None

    @property
    def ctrl(self) -> bool:
        return bool(self.mods & Modifiers.CTRL)

    @property
    def alt(self) -> bool:
        return bool(self.mods & Modifiers.ALT)

    @property
    def shift(self) -> bool:
        return bool(self.mods & Modifiers.SHIFT)

    def describe(self) -> str:
        """Human-readable form such as ``ctrl+alt+up``."""
        parts = [flag.name.lower() for flag in Modifiers if flag and flag in self.mods and flag.name]
        parts.append(key_name(self.codepoint))
        text = "+".join(parts)
        if self.shifted_codepoint is not None:
            text += f" (shifted {key_name(self.shifted_codepoint)})"
        if self.base_layout_codepoint is not None:
            text += f" (base {key_name(self.base_layout_codepoint)})"
        return text


class EventType(enum.Enum):
    """Kinds of input events the decoder produces."""

    KEY_PRESS = "key_press"
    FOCUS_IN = "focus_in"
    FOCUS_OUT = "focus_out"


@dataclass(frozen=True)
class Event:
    """A decoded input event. ``key`` is only set for key presses."""

    type: EventType
    key: Optional[Key] = None

    @classmethod
    def key_press(cls, key: Key) -> "Event":
        return cls(EventType.KEY_PRESS, key)

    @classmethod
    def focus_in(cls) -> "Event":
        return cls(EventType.FOCUS_IN)

    @classmethod
    def focus_out(cls) -> "Event":
        return cls(EventType.FOCUS_OUT)

    def describe(self) -> str:
        if self.key is None:
            return self.type.value
        return f"{self.type.value} {self.key.describe()}"
