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
Unit tests for vtkeys CLI module.

This module tests argument parsing, the offline decode mode and the
entrypoint logic without touching a real terminal.
"""

import io
import os
import sys
import unittest
from argparse import Namespace
from unittest.mock import MagicMock, patch

# Add parent directory to path to import vtkeys
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "../..")))

from vtkeys import keys  # noqa: E402
from vtkeys.cli import (  # noqa: E402
    _is_quit,
    decode_all,
    format_result,
    handle_options,
    main,
    parse_hex,
    run,
    run_decode,
    run_interactive,
)
from vtkeys.keys import Event, Key, Modifiers  # noqa: E402
from vtkeys.parser import Result  # noqa: E402
from vtkeys.sequence import ParameterValueError  # noqa: E402


def make_args(**overrides):
    values = {
        "decode": None,
        "log_level": "WARNING",
        "log_file": None,
        "debug_log": None,
        "esc_gap": 0.03,
        "esc_total": 0.5,
        "show_hex": False,
        "max_buffer": 4096,
    }
    values.update(overrides)
    return Namespace(**values)


class TestCLIArgumentParsing(unittest.TestCase):
    """Test command-line argument parsing in vtkeys.cli"""

    def _parse(self, *argv):
        with patch("sys.argv", ["vtkeys", "--no-config", *argv]):
            return handle_options()

    def test_decode_inputs(self):
        args = self._parse("-d", "1b5b41", "61")
        self.assertEqual(args.decode, ["1b5b41", "61"])

    def test_log_level_is_case_insensitive(self):
        self.assertEqual(self._parse("--log-level", "debug").log_level, "DEBUG")

    def test_invalid_log_level(self):
        with self.assertRaises(SystemExit):
            self._parse("--log-level", "chatty")

    def test_timing_options(self):
        args = self._parse("--esc-gap", "0.01", "--esc-total", "0.25")
        self.assertEqual(args.esc_gap, 0.01)
        self.assertEqual(args.esc_total, 0.25)

    def test_show_hex_flag(self):
        self.assertTrue(self._parse("-x").show_hex)

    def test_esc_gap_must_be_positive(self):
        with self.assertRaises(SystemExit):
            self._parse("--esc-gap", "0")

    def test_esc_total_not_below_gap(self):
        with self.assertRaises(SystemExit):
            self._parse("--esc-gap", "0.2", "--esc-total", "0.1")

    def test_max_buffer_minimum(self):
        with self.assertRaises(SystemExit):
            self._parse("--max-buffer", "8")


class TestParseHex(unittest.TestCase):
    """Hex input parsing for --decode."""

    def test_plain(self):
        self.assertEqual(parse_hex("1b5b41"), b"\x1b[A")

    def test_spaced_and_prefixed(self):
        self.assertEqual(parse_hex("1b 5b 41"), b"\x1b[A")
        self.assertEqual(parse_hex("0x1b,0x5b,0x41"), b"\x1b[A")
        self.assertEqual(parse_hex("0X1B 0X4F 0X50"), b"\x1bOP")

    def test_invalid(self):
        with self.assertRaises(ValueError):
            parse_hex("1b5")
        with self.assertRaises(ValueError):
            parse_hex("zz")


class TestFormatResult(unittest.TestCase):
    """Rendering of decode outcomes."""

    def test_event_with_hex(self):
        line = format_result(b"\x1b[1;5A", Result(Event.key_press(Key(keys.UP, Modifiers.CTRL)), 6))
        self.assertTrue(line.startswith("key_press ctrl+up "))
        self.assertIn("n=6", line)
        self.assertTrue(line.endswith("1b 5b 31 3b 35 41"))

    def test_without_hex(self):
        line = format_result(b"a", Result(Event.key_press(Key(ord("a"))), 1), show_hex=False)
        self.assertEqual(line, "key_press a".ljust(40) + " n=1")

    def test_skipped_and_incomplete(self):
        self.assertTrue(format_result(b"\x1b[200~", Result(None, 6)).startswith("(skipped)"))
        self.assertTrue(format_result(b"\x1b[", Result(None, 0)).startswith("(incomplete)"))


class TestDecodeAll(unittest.TestCase):
    """Offline decoding of whole byte strings."""

    def test_sequence_of_keys(self):
        results, remainder = decode_all(b"a\x1bOB\x1b[5~")
        self.assertEqual(remainder, b"")
        self.assertEqual([raw for raw, _ in results], [b"a", b"\x1bOB", b"\x1b[5~"])
        self.assertEqual(results[2][1].event.key, Key(keys.PAGE_UP))

    def test_incomplete_remainder(self):
        results, remainder = decode_all(b"x\x1b[1;")
        self.assertEqual(len(results), 1)
        self.assertEqual(remainder, b"\x1b[1;")

    def test_alt_key_leaves_character(self):
        """Alt+key consumes only the ESC, so the character decodes again."""
        results, _ = decode_all(b"\x1bz")
        self.assertEqual([r.event.key for _, r in results], [Key(ord("z"), Modifiers.ALT), Key(ord("z"))])

    def test_malformed_raises(self):
        with self.assertRaises(ParameterValueError):
            decode_all(b"\x1b[70000A")


class TestRunDecode(unittest.TestCase):
    """The --decode mode."""

    @patch("sys.stdout", new_callable=io.StringIO)
    def test_prints_one_line_per_result(self, mock_stdout):
        self.assertEqual(run_decode(["1b5b41 71"]), 0)
        lines = mock_stdout.getvalue().splitlines()
        self.assertEqual(len(lines), 2)
        self.assertTrue(lines[0].startswith("key_press up"))
        self.assertTrue(lines[1].startswith("key_press q"))

    @patch("sys.stdout", new_callable=io.StringIO)
    def test_incomplete_tail_is_reported(self, mock_stdout):
        self.assertEqual(run_decode(["1b5b"]), 0)
        self.assertTrue(mock_stdout.getvalue().startswith("(incomplete)"))

    @patch("sys.stderr", new_callable=io.StringIO)
    @patch("sys.stdout", new_callable=io.StringIO)
    def test_invalid_hex(self, mock_stdout, mock_stderr):
        self.assertEqual(run_decode(["nothex", "61"]), 1)
        self.assertIn("invalid hex input", mock_stderr.getvalue())
        self.assertTrue(mock_stdout.getvalue().startswith("key_press a"))

    @patch("sys.stderr", new_callable=io.StringIO)
    @patch("sys.stdout", new_callable=io.StringIO)
    def test_malformed_input(self, _mock_stdout, mock_stderr):
        self.assertEqual(run_decode(["1b5b3730303030 41"]), 1)
        self.assertIn("at byte 7", mock_stderr.getvalue())


class TestInteractive(unittest.TestCase):
    """Interactive mode with the terminal mocked out."""

    def test_quit_keys(self):
        self.assertTrue(_is_quit(Result(Event.key_press(Key(ord("q"))), 1)))
        self.assertTrue(_is_quit(Result(Event.key_press(Key(ord("c"), Modifiers.CTRL)), 1)))
        self.assertTrue(_is_quit(Result(Event.key_press(Key(ord("d"), Modifiers.CTRL)), 1)))
        self.assertFalse(_is_quit(Result(Event.key_press(Key(ord("q"), Modifiers.ALT)), 1)))
        self.assertFalse(_is_quit(Result(Event.focus_in(), 3)))
        self.assertFalse(_is_quit(Result(None, 6)))

    def test_alt_q_does_not_quit(self):
        """ESC q decodes as Alt+q followed by a plain q; only a fresh q quits."""
        results = [r for _, r in decode_all(b"\x1bq")[0]]
        self.assertEqual(len(results), 2)
        self.assertFalse(_is_quit(results[0]))
        self.assertFalse(_is_quit(results[1], previous=results[0]))
        self.assertTrue(_is_quit(results[1], previous=results[1]))

    @patch("vtkeys.cli.os.isatty", return_value=False)
    @patch("sys.stderr", new_callable=io.StringIO)
    def test_requires_terminal(self, mock_stderr, _mock_isatty):
        with patch("sys.stdin") as mock_stdin:
            mock_stdin.fileno.return_value = 0
            self.assertEqual(run_interactive(make_args()), 1)
        self.assertIn("--decode", mock_stderr.getvalue())

    @patch("vtkeys.cli.terminal_raw_mode")
    @patch("vtkeys.cli.read_input")
    @patch("vtkeys.cli.os.isatty", return_value=True)
    @patch("sys.stdout", new_callable=io.StringIO)
    def test_runs_until_quit(self, mock_stdout, _mock_isatty, mock_read_input, mock_raw):
        mock_raw.return_value.__enter__ = MagicMock(return_value=None)
        mock_raw.return_value.__exit__ = MagicMock(return_value=False)
        mock_read_input.side_effect = [
            [],
            [(b"\x1b[A", Result(Event.key_press(Key(keys.UP)), 3))],
            [(b"q", Result(Event.key_press(Key(ord("q"))), 1))],
        ]
        with patch("sys.stdin") as mock_stdin:
            mock_stdin.fileno.return_value = 0
            self.assertEqual(run_interactive(make_args(esc_gap=0.01)), 0)

        output = mock_stdout.getvalue()
        self.assertIn("key_press up", output)
        self.assertIn("key_press q", output)
        self.assertEqual(mock_read_input.call_count, 3)
        self.assertEqual(mock_read_input.call_args.kwargs["gap"], 0.01)


    @patch("vtkeys.cli.terminal_raw_mode")
    @patch("vtkeys.cli.read_input")
    @patch("vtkeys.cli.os.isatty", return_value=True)
    @patch("sys.stdout", new_callable=io.StringIO)
    def test_alt_q_keeps_running(self, _mock_stdout, _mock_isatty, mock_read_input, _mock_raw):
        alt_q = Result(Event.key_press(Key(ord("q"), Modifiers.ALT)), 1)
        plain_q = Result(Event.key_press(Key(ord("q"))), 1)
        mock_read_input.side_effect = [
            [(b"\x1b", alt_q), (b"q", plain_q)],
            [(b"q", plain_q)],
        ]
        with patch("sys.stdin") as mock_stdin:
            mock_stdin.fileno.return_value = 0
            self.assertEqual(run_interactive(make_args()), 0)
        self.assertEqual(mock_read_input.call_count, 2)


class TestCLIRun(unittest.TestCase):
    """Test run() exit codes and debug log handling"""

    @patch("vtkeys.cli._configure_logging")
    @patch("vtkeys.cli.run_decode", return_value=0)
    def test_decode_mode(self, mock_run_decode, _mock_logging):
        self.assertEqual(run(make_args(decode=["61"])), 0)
        mock_run_decode.assert_called_once_with(["61"], show_hex=True)

    @patch("vtkeys.cli._configure_logging")
    @patch("vtkeys.cli.run_interactive", side_effect=KeyboardInterrupt)
    def test_keyboard_interrupt(self, _mock_interactive, _mock_logging):
        self.assertEqual(run(make_args()), 130)

    @patch("vtkeys.cli._configure_logging")
    @patch("vtkeys.cli.shutdown_debug_logger")
    @patch("vtkeys.cli.init_debug_logger")
    @patch("vtkeys.cli.run_decode", return_value=1)
    def test_debug_log_lifecycle(self, _mock_run_decode, mock_init, mock_shutdown, _mock_logging):
        self.assertEqual(run(make_args(decode=["zz"], debug_log="/tmp/vtkeys-test.jsonl")), 1)
        mock_init.assert_called_once_with("/tmp/vtkeys-test.jsonl")
        mock_shutdown.assert_called_once()


class TestCLIMain(unittest.TestCase):
    """Test the main CLI entrypoint function"""

    @patch("vtkeys.cli.run", return_value=0)
    @patch("vtkeys.cli.handle_options")
    def test_main_calls_handle_options_and_run(self, mock_handle_options, mock_run):
        mock_args = MagicMock()
        mock_handle_options.return_value = mock_args

        with self.assertRaises(SystemExit) as cm:
            main()

        self.assertEqual(cm.exception.code, 0)
        mock_run.assert_called_once_with(mock_args)

    def test_main_help(self):
        with patch("sys.argv", ["vtkeys", "--help"]):
            with patch("sys.stdout", new_callable=io.StringIO):
                with self.assertRaises(SystemExit) as cm:
                    main()
        self.assertEqual(cm.exception.code, 0)


if __name__ == "__main__":
    unittest.main()
