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
Scratch state collected while scanning a CSI sequence.

A CSI sequence carries an optional private indicator, intermediate bytes,
and a list of numeric parameters separated by ``;`` (new parameter) or
``:`` (sub-parameter of the previous one). Parameters may be empty, in
which case they default to 0 and are flagged so that callers can tell
"0" from "absent".
"""

from typing import List, Optional

MAX_PARAMS = 16
MAX_PARAM_DIGITS = 8
MAX_PARAM_VALUE = 0xFFFF


class DecodeError(ValueError):
    """
    Raised when a sequence cannot be scanned at all.

    Attributes:
        offset: Index of the byte at which the problem was detected. Callers
            resynchronise by dropping ``offset + 1`` bytes.
    """

    def __init__(self, message: str, offset: int) -> None:
        super().__init__(message)
        self.offset = offset


class ParameterValueError(DecodeError):
    """A numeric parameter does not fit in an unsigned 16-bit value."""


class ParameterOverflowError(DecodeError):
    """Too many parameters, or too many digits in a single parameter."""


class SequenceScratch:
    """
    Working storage for one CSI sequence.

    ``sub_params[i]`` is set when parameter ``i`` was introduced by ``:``
    (a sub-parameter of parameter ``i - 1``); ``empty_params[i]`` is set when
    parameter ``i`` had no digits and was defaulted to 0. Both lists are
    indexed in lockstep with ``params``.
    """

    __slots__ = ("private_indicator", "intermediate", "params", "digits", "sub_params", "empty_params")

    def __init__(self) -> None:
        self.private_indicator: Optional[int] = None
        self.intermediate: Optional[int] = None
        self.params: List[int] = []
        self.digits = bytearray()
        self.sub_params = [False] * (MAX_PARAMS + 1)
        self.empty_params = [False] * MAX_PARAMS

    @property
    def param_count(self) -> int:
        return len(self.params)

    def add_digit(self, byte: int, offset: int) -> None:
        """Append an ASCII digit to the pending parameter."""
        if len(self.digits) >= MAX_PARAM_DIGITS:
            raise ParameterOverflowError(f"CSI parameter longer than {MAX_PARAM_DIGITS} digits", offset)
        self.digits.append(byte)

    def _store(self, value: int, empty: bool, offset: int) -> None:
        if len(self.params) >= MAX_PARAMS:
            raise ParameterOverflowError(f"CSI sequence has more than {MAX_PARAMS} parameters", offset)
        if empty:
            self.empty_params[len(self.params)] = True
        self.params.append(value)

    def _pending_value(self, offset: int) -> int:
        value = int(self.digits.decode("ascii"), 10)
        if value > MAX_PARAM_VALUE:
            raise ParameterValueError(f"CSI parameter {value} exceeds {MAX_PARAM_VALUE}", offset)
        self.digits.clear()
        return value

    def separate(self, offset: int, sub: bool = False) -> None:
        """
        Close the current parameter at a ``;`` or ``:`` separator.

        An empty digit buffer yields a defaulted 0. For ``:`` the *next*
        parameter slot is flagged as a sub-parameter of the one just closed.
        """
        if self.digits:
            self._store(self._pending_value(offset), False, offset)
        else:
            self._store(0, True, offset)
        if sub:
            self.sub_params[len(self.params)] = True

    def finish(self, offset: int) -> None:
        """Flush trailing digits as the final parameter when the final byte arrives."""
        if self.digits:
            self._store(self._pending_value(offset), False, offset)

    def is_sub(self, index: int) -> bool:
        return 0 <= index < len(self.sub_params) and self.sub_params[index]

    def is_empty(self, index: int) -> bool:
        return 0 <= index < len(self.empty_params) and self.empty_params[index]
