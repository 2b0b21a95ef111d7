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
Lookup tables mapping terminal input sequences to key codepoints.
"""

from typing import Dict

from vtkeys import keys

# Final bytes shared by SS3 (ESC O x) and CSI (ESC [ ... x)
SS3_KEYS: Dict[int, int] = {
    ord("A"): keys.UP,
    ord("B"): keys.DOWN,
    ord("C"): keys.RIGHT,
    ord("D"): keys.LEFT,
    ord("F"): keys.END,
    ord("H"): keys.HOME,
    ord("P"): keys.F1,
    ord("Q"): keys.F2,
    ord("R"): keys.F3,
    ord("S"): keys.F4,
}

# CSI adds the keypad "begin" key (ESC [ E) on top of the SS3 set
CSI_FINAL_KEYS: Dict[int, int] = {**SS3_KEYS, ord("E"): keys.KP_BEGIN}

# ESC [ <code> ~ function keys, keyed by the first parameter
TILDE_KEYS: Dict[int, int] = {
    2: keys.INSERT,
    3: keys.DELETE,
    5: keys.PAGE_UP,
    6: keys.PAGE_DOWN,
    7: keys.HOME,
    8: keys.END,
    11: keys.F1,
    12: keys.F2,
    13: keys.F3,
    14: keys.F4,
    15: keys.F5,
    17: keys.F6,
    18: keys.F7,
    19: keys.F8,
    20: keys.F9,
    21: keys.F10,
    23: keys.F11,
    24: keys.F12,
    57427: keys.KP_BEGIN,
}

# Bracketed paste start/end markers. Recognised but not decoded.
PASTE_CODES = frozenset((200, 201))
