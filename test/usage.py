"""
Usage module behavioral tests (the default usage renderer and custom renderers).

Scope
- Validate the sections of the default usage block and what feeds each of them.
- Validate that only the described command is rendered, never the whole tree.
- Validate custom renderers (plain strings printed verbatim) and fancy panels.

Conventions
- Test method names follow CamelCase per project convention.
- Rendering is captured through a rich Console writing to a text stream.
"""

from __future__ import annotations

import io
import unittest
from unittest import TestCase

from rich.console import Console

from arborist import Command, FlagSet, HelpRequested, render


def rendered(renderable):
    stream = io.StringIO()
    Console(file=stream, width=100).print(renderable)
    return stream.getvalue()


def tree():
    flags = FlagSet("root")
    flags.string("string", descr="string flag")
    flags.boolean("bool", descr="bool flag")
    flags.integer("int", descr="int flag")
    root = Command(
        "root [flags] <command>",
        descr="short help",
        details="long help describing the root command",
        flags=flags,
    )
    Command("sub", root, aliases=["foobar", "s"], descr="the sub command")
    Command("other", root)
    return root


class TestDefaultRenderer(TestCase):
    """Sections of the default usage block."""

    def testUsageSection(self):
        output = rendered(render(tree()))
        self.assertIn("usage:", output)
        self.assertIn("root [flags] <command>", output)

    def testLongHelpPreferredOverShortHelp(self):
        output = rendered(render(tree()))
        self.assertIn("long help describing the root command", output)
        self.assertNotIn("short help", output)

    def testShortHelpIsTheFallback(self):
        output = rendered(render(Command("solo", descr="short help")))
        self.assertIn("short help", output)

    def testSubcommandsSection(self):
        output = rendered(render(tree()))
        self.assertIn("subcommands:", output)
        self.assertIn("sub (foobar, s)", output)
        self.assertIn("the sub command", output)
        self.assertIn("other", output)

    def testFlagsSection(self):
        output = rendered(render(tree()))
        self.assertIn("flags:", output)
        self.assertIn("-bool", output)
        self.assertNotIn("-bool=", output)
        self.assertIn("-int 0", output)
        self.assertIn("-string ...", output)
        self.assertIn("int flag", output)
        self.assertLess(output.index("-bool"), output.index("-int"))
        self.assertLess(output.index("-int"), output.index("-string"))

    def testEmptySectionsAreOmitted(self):
        output = rendered(render(Command("leaf")))
        self.assertIn("usage:", output)
        self.assertNotIn("subcommands:", output)
        self.assertNotIn("flags:", output)

    def testOnlyTheGivenCommandIsDescribed(self):
        root = tree()
        output = rendered(render(root.children[0]))
        self.assertIn("the sub command", output)
        self.assertNotIn("long help describing the root command", output)
        self.assertNotIn("subcommands:", output)

    def testFancyWrapsInTitledPanel(self):
        root = Command("root", descr="short help", fancy=True)
        output = rendered(render(root))
        self.assertIn("ROOT HELP", output)
        self.assertIn("short help", output)


class TestCommandHelp(TestCase):
    """Command.help() and custom renderers."""

    def testHelpPrintsToCommandOutput(self):
        stream = io.StringIO()
        root = Command("root", descr="short help", output=stream)
        root.help()
        self.assertIn("usage:", stream.getvalue())

    def testCustomRendererStringsArePrintedVerbatim(self):
        stream = io.StringIO()
        root = Command(
            "root",
            renderer=lambda command: "custom usage of %s [flags] [bold]x[/bold]" % command.name,
            output=stream,
        )
        root.help()
        self.assertEqual(stream.getvalue(), "custom usage of root [flags] [bold]x[/bold]\n")

    def testCustomRendererIsUsedOnHelpFlag(self):
        stream = io.StringIO()
        root = Command("root", renderer=lambda command: "custom", work=lambda context, args: None, output=stream)
        with self.assertRaises(HelpRequested):
            root.parse(["-h"])
        self.assertEqual(stream.getvalue(), "custom\n")


if __name__ == "__main__":
    unittest.main()
