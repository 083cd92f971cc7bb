"""
Flags module behavioral tests (Flag definitions and the FlagSet binder).

Scope
- Validate flag definition rules (names, duplicates, defaults, explicit boolean capability).
- Validate the token grammar: single/double dash, inline values, '--', lone '-'.
- Validate faults raised for malformed, unknown, valueless and unconvertible flags.
- Validate the usage hook and the fallback listing.

Conventions
- Test method names follow CamelCase per project convention.
- Output is captured through a rich Console writing to a text stream.
"""

from __future__ import annotations

import io
import unittest
from unittest import TestCase

from rich.console import Console

from arborist import (
    Flag,
    FlagSet,
    FlagSyntaxError,
    HelpRequested,
    InvalidFlagValueError,
    MalformedFlagError,
    MissingFlagValueError,
    UnknownFlagError,
    truth,
)


def flagset(name="root"):
    stream = io.StringIO()
    flags = FlagSet(name, output=Console(file=stream, width=100))
    flags.string("string", descr="string flag")
    flags.boolean("bool", descr="bool flag")
    flags.integer("int", descr="int flag")
    return flags, stream


class TestFlagDefinition(TestCase):
    """Construction of flags and flag sets."""

    def testDefaultsPerKind(self):
        flags = FlagSet("root")
        self.assertEqual(flags.string("s").value, "")
        self.assertIs(flags.boolean("b").value, False)
        self.assertEqual(flags.integer("i").value, 0)
        self.assertEqual(flags.floating("f").value, 0.0)
        self.assertIsNone(flags.define("raw").value)

    def testBooleanIsAnExplicitCapability(self):
        self.assertTrue(Flag("verbose", boolean=True).boolean)
        # a converter returning bools does not make a flag boolean
        self.assertFalse(Flag("verbose", truth).boolean)

    def testBooleanFlagsAlwaysConvertThroughTruth(self):
        flag = Flag("verbose", int, boolean=True)
        self.assertIs(flag.type, truth)
        self.assertIs(flag.default, False)

    def testNamesAreValidated(self):
        for name in ("-x", "--x", "", "1st", "a=b", "a b", "_x", "a-", "a--b"):
            with self.subTest(name=name):
                with self.assertRaises(ValueError):
                    Flag(name)
        with self.assertRaises(TypeError):
            Flag(42)

    def testHyphenatedNamesAccepted(self):
        self.assertEqual(Flag("dry-run", boolean=True).name, "dry-run")

    def testUnderscoredNamesAccepted(self):
        for name in ("dry_run", "max_retries-2", "a_"):
            with self.subTest(name=name):
                self.assertEqual(Flag(name).name, name)
        flags = FlagSet("root")
        flags.boolean("dry_run")
        flags.parse(["-dry_run"])
        self.assertIs(flags["dry_run"], True)

    def testResetRestoresDefaults(self):
        flags, _ = flagset()
        flags.parse(["-int", "3", "-bool", "--"])
        flags.reset()
        self.assertEqual(flags["int"], 0)
        self.assertIs(flags["bool"], False)
        self.assertFalse(flags.terminated)

    def testDuplicateNameRejected(self):
        flags = FlagSet("root")
        flags.string("name")
        with self.assertRaises(ValueError):
            flags.boolean("name")

    def testConverterMustBeCallable(self):
        with self.assertRaises(TypeError):
            Flag("port", "int")

    def testContainerProtocol(self):
        flags, _ = flagset()
        self.assertEqual(len(flags), 3)
        self.assertIn("bool", flags)
        self.assertNotIn("missing", flags)
        self.assertEqual([flag.name for flag in flags], ["bool", "int", "string"])
        self.assertIsInstance(flags.lookup("int"), Flag)
        self.assertIsNone(flags.lookup("missing"))
        with self.assertRaises(KeyError):
            flags["missing"]

    def testSynopsis(self):
        flags = FlagSet("root")
        self.assertEqual(flags.boolean("bool").synopsis, "-bool")
        self.assertEqual(flags.integer("int").synopsis, "-int 0")
        self.assertEqual(flags.string("string").synopsis, "-string ...")
        self.assertEqual(flags.string("host", "localhost").synopsis, "-host localhost")

    def testTruthLiterals(self):
        for literal in ("1", "t", "T", "TRUE", "true", "True"):
            self.assertIs(truth(literal), True)
        for literal in ("0", "f", "F", "FALSE", "false", "False"):
            self.assertIs(truth(literal), False)
        for literal in ("yes", "no", "", "tRUE"):
            with self.subTest(literal=literal):
                with self.assertRaises(ValueError):
                    truth(literal)


class TestFlagBinding(TestCase):
    """The parse(tokens) grammar."""

    def testBindsAndStopsAtFirstPositional(self):
        flags, _ = flagset()
        remainder = flags.parse(["-string", "bar", "-bool", "-int", "42", "x", "-int", "7"])
        self.assertEqual(remainder, ["x", "-int", "7"])
        self.assertEqual(flags["string"], "bar")
        self.assertIs(flags["bool"], True)
        self.assertEqual(flags["int"], 42)
        self.assertFalse(flags.terminated)

    def testEmptyTokens(self):
        flags, _ = flagset()
        self.assertEqual(flags.parse([]), [])
        self.assertEqual(flags["int"], 0)

    def testDoubleDashIsConsumedAndTerminates(self):
        flags, _ = flagset()
        self.assertEqual(flags.parse(["-bool", "--", "-int", "3"]), ["-int", "3"])
        self.assertTrue(flags.terminated)
        self.assertEqual(flags["int"], 0)

    def testTerminationIsResetOnEveryParse(self):
        flags, _ = flagset()
        flags.parse(["--"])
        self.assertTrue(flags.terminated)
        flags.parse(["x"])
        self.assertFalse(flags.terminated)

    def testLoneDashIsPositional(self):
        flags, _ = flagset()
        self.assertEqual(flags.parse(["-", "-bool"]), ["-", "-bool"])
        self.assertIs(flags["bool"], False)

    def testDoubleDashSpellingAndInlineValues(self):
        flags, _ = flagset()
        self.assertEqual(flags.parse(["--string=a=b", "--int=0x10", "--bool"]), [])
        self.assertEqual(flags["string"], "a=b")
        self.assertEqual(flags["int"], 16)
        self.assertIs(flags["bool"], True)

    def testEmptyInlineValue(self):
        flags, _ = flagset()
        flags.parse(["-string=before", "-string="])
        self.assertEqual(flags["string"], "")

    def testBooleanInlineValue(self):
        flags, _ = flagset()
        flags.parse(["-bool", "-bool=false"])
        self.assertIs(flags["bool"], False)

    def testBooleanNeverConsumesNextToken(self):
        flags, _ = flagset()
        self.assertEqual(flags.parse(["-bool", "false"]), ["false"])
        self.assertIs(flags["bool"], True)

    def testValueFlagConsumesNextTokenVerbatim(self):
        flags, _ = flagset()
        self.assertEqual(flags.parse(["-string", "-bool"]), [])
        self.assertEqual(flags["string"], "-bool")
        self.assertIs(flags["bool"], False)

    def testLastOccurrenceWins(self):
        flags, _ = flagset()
        flags.parse(["-int", "1", "-int", "2"])
        self.assertEqual(flags["int"], 2)

    def testMalformedFlags(self):
        for token in ("---x", "-=x", "--=x", "---"):
            with self.subTest(token=token):
                flags, _ = flagset()
                with self.assertRaises(MalformedFlagError) as context:
                    flags.parse([token])
                self.assertEqual(context.exception.token, token)
                self.assertEqual(context.exception.message, "bad flag syntax: %s" % token)

    def testUnknownFlag(self):
        flags, _ = flagset()
        with self.assertRaises(UnknownFlagError) as context:
            flags.parse(["-nope"])
        self.assertEqual(context.exception.message, "flag provided but not defined: -nope")
        self.assertIsInstance(context.exception, FlagSyntaxError)

    def testHelpRequested(self):
        for token in ("-h", "-help", "--help", "-h=1"):
            with self.subTest(token=token):
                flags, _ = flagset()
                with self.assertRaises(HelpRequested):
                    flags.parse([token])

    def testDefinedHelpFlagIsBoundInstead(self):
        flags = FlagSet("root")
        flags.boolean("h")
        self.assertEqual(flags.parse(["-h", "x"]), ["x"])
        self.assertIs(flags["h"], True)

    def testMissingValue(self):
        flags, _ = flagset()
        with self.assertRaises(MissingFlagValueError) as context:
            flags.parse(["-int"])
        self.assertEqual(context.exception.message, "flag needs an argument: -int")

    def testInvalidValues(self):
        for tokens in (["-int", "r"], ["-int=4.2"], ["-bool=maybe"]):
            with self.subTest(tokens=tokens):
                flags, _ = flagset()
                with self.assertRaises(InvalidFlagValueError):
                    flags.parse(tokens)

    def testRejectsNonStringTokens(self):
        flags, _ = flagset()
        with self.assertRaises(TypeError):
            flags.parse(["-int", 4])


class TestFlagUsage(TestCase):
    """Usage hook and default listing."""

    def testUsageHookCalledOnceBeforeFault(self):
        flags, stream = flagset()
        calls = []
        flags.usage = lambda: calls.append(True)

        for tokens in (["-h"], ["-nope"], ["-int"], ["-int", "x"], ["---x"]):
            with self.subTest(tokens=tokens):
                calls.clear()
                with self.assertRaises((HelpRequested, FlagSyntaxError)):
                    flags.parse(tokens)
                self.assertEqual(calls, [True])
        self.assertEqual(stream.getvalue(), "")

    def testUsageHookNotCalledOnSuccess(self):
        flags, _ = flagset()
        calls = []
        flags.usage = lambda: calls.append(True)
        flags.parse(["-bool", "x"])
        self.assertEqual(calls, [])

    def testDefaultListing(self):
        flags, stream = flagset("serve")
        with self.assertRaises(HelpRequested):
            flags.parse(["-help"])

        listing = stream.getvalue()
        self.assertIn("usage of serve:", listing)
        self.assertIn("-bool", listing)
        self.assertNotIn("-bool=", listing)
        self.assertIn("-int 0", listing)
        self.assertIn("int flag", listing)


if __name__ == "__main__":
    unittest.main()
