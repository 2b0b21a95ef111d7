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
Unit tests for SequenceScratch - CSI parameter accumulation.
"""

import os
import sys
import unittest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "../..")))

from vtkeys.sequence import (  # noqa: E402
    MAX_PARAM_DIGITS,
    MAX_PARAMS,
    DecodeError,
    ParameterOverflowError,
    ParameterValueError,
    SequenceScratch,
)


def scan(text: str) -> SequenceScratch:
    """Feed a parameter string the way the CSI state does, then finish it."""
    seq = SequenceScratch()
    for offset, char in enumerate(text):
        if char == ";":
            seq.separate(offset)
        elif char == ":":
            seq.separate(offset, sub=True)
        else:
            seq.add_digit(ord(char), offset)
    seq.finish(len(text))
    return seq


class TestSequenceScratch(unittest.TestCase):
    """Parameter, sub-parameter and empty-parameter tracking."""

    def test_fresh_scratch_is_empty(self):
        seq = SequenceScratch()
        self.assertEqual(seq.param_count, 0)
        self.assertIsNone(seq.private_indicator)
        self.assertIsNone(seq.intermediate)
        self.assertFalse(seq.is_sub(0))
        self.assertFalse(seq.is_empty(0))

    def test_single_parameter(self):
        self.assertEqual(scan("15").params, [15])

    def test_semicolon_separated(self):
        seq = scan("1;5")
        self.assertEqual(seq.params, [1, 5])
        self.assertFalse(seq.is_sub(1))

    def test_empty_parameters_default_to_zero(self):
        seq = scan(";;3")
        self.assertEqual(seq.params, [0, 0, 3])
        self.assertTrue(seq.is_empty(0))
        self.assertTrue(seq.is_empty(1))
        self.assertFalse(seq.is_empty(2))

    def test_explicit_zero_is_not_empty(self):
        seq = scan("0;1")
        self.assertEqual(seq.params, [0, 1])
        self.assertFalse(seq.is_empty(0))

    def test_colon_marks_next_slot(self):
        seq = scan("97:65:113;2")
        self.assertEqual(seq.params, [97, 65, 113, 2])
        self.assertFalse(seq.is_sub(0))
        self.assertTrue(seq.is_sub(1))
        self.assertTrue(seq.is_sub(2))
        self.assertFalse(seq.is_sub(3))

    def test_empty_subparameter(self):
        seq = scan("1089::99")
        self.assertEqual(seq.params, [1089, 0, 99])
        self.assertTrue(seq.is_sub(1))
        self.assertTrue(seq.is_empty(1))
        self.assertTrue(seq.is_sub(2))

    def test_trailing_separator_leaves_no_final_parameter(self):
        self.assertEqual(scan("1;").params, [1])

    def test_finish_without_digits_adds_nothing(self):
        seq = SequenceScratch()
        seq.finish(0)
        self.assertEqual(seq.param_count, 0)

    def test_out_of_range_lookups_are_false(self):
        seq = scan("1")
        self.assertFalse(seq.is_sub(-1))
        self.assertFalse(seq.is_sub(MAX_PARAMS + 5))
        self.assertFalse(seq.is_empty(MAX_PARAMS))


class TestSequenceLimits(unittest.TestCase):
    """Capacity and value limits."""

    def test_digit_limit(self):
        seq = SequenceScratch()
        for offset in range(MAX_PARAM_DIGITS):
            seq.add_digit(ord("1"), offset)
        with self.assertRaises(ParameterOverflowError) as cm:
            seq.add_digit(ord("1"), 42)
        self.assertEqual(cm.exception.offset, 42)

    def test_parameter_limit(self):
        seq = SequenceScratch()
        for offset in range(MAX_PARAMS):
            seq.separate(offset)
        with self.assertRaises(ParameterOverflowError):
            seq.separate(MAX_PARAMS)

    def test_final_parameter_counts_towards_limit(self):
        seq = SequenceScratch()
        for offset in range(MAX_PARAMS):
            seq.separate(offset)
        seq.add_digit(ord("7"), MAX_PARAMS)
        with self.assertRaises(ParameterOverflowError):
            seq.finish(MAX_PARAMS + 1)

    def test_value_limit(self):
        with self.assertRaises(ParameterValueError) as cm:
            scan("65536")
        self.assertEqual(cm.exception.offset, 5)
        self.assertIn("65536", str(cm.exception))

    def test_error_hierarchy(self):
        self.assertTrue(issubclass(ParameterValueError, DecodeError))
        self.assertTrue(issubclass(ParameterOverflowError, DecodeError))
        self.assertTrue(issubclass(DecodeError, ValueError))


if __name__ == "__main__":
    unittest.main()
