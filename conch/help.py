"""
Help text formatting.

Every formatter returns plain text; render() turns it into a rich Text with the
section labels styled, so the same string can be snapshotted in tests and shown
in color on a terminal.

Palette keys
- section-label, command-name, rule, hint
Define __styles__ in __main__ to override any of them.
"""
import re
import sys
from collections import defaultdict

from rich.text import Text

RULE = "=" * 60

_LABEL = re.compile(
    r"^(Command|Description|Category|Version|Author|Usage|Parameters|Options|Examples"
    r"|Available commands|Global options|Special commands|Did you mean one of these\?)(?=:|$)",
    re.MULTILINE,
)
_CATEGORY = re.compile(r"^\S[^\n]*:$", re.MULTILINE)


class HelpFormatter:
    """
    Render registry-level help (listing, global help, suggestions) and proxy
    command-level help to CommandDefinition.generate_help.
    """
    __palette__ = {
        "section-label": "bold #00E6FF",  # cyan headings
        "command-name": "bold #FF4D94",
        "rule": "#4B5563",
        "hint": "italic #9CA3AF",
    }

    def __init__(self, *, colorful=False):
        self.colorful = colorful

    def format_command(self, definition, detailed=False):
        return definition.generate_help(detailed)

    def format_listing(self, registry, by_category=True):
        """
        List commands with their descriptions.

        - by_category: categories in first-registration order, names in
          registration order (duplicates from re-registration included).
        - otherwise: every name once, sorted lexically.
        """
        lines = ["Available commands:", RULE]
        if by_category:
            for category, names in registry.categories.items():
                lines.extend(("", "%s:" % category))
                for name in names:
                    if (definition := registry.find(name)) is not None:
                        lines.append(("  %-20s %s" % (name, definition.description)).rstrip())
        else:
            for name in sorted(registry.names):
                definition = registry.find(name)
                lines.append(("  %-20s %s" % (name, definition.description)).rstrip())
        lines.extend(("", "Use 'help <command>' for detailed help"))
        return "\n".join(lines)

    def format_global(self, options, title="Command line tool"):
        lines = ["%s - global help" % title, RULE, "Global options:"]
        for option in options:
            lines.append(("  %-40s %s" % (option.usage, option.description)).rstrip())
        lines.extend((
            "",
            "Special commands:",
            "  %-20s %s" % ("help [command]", "show help, globally or for one command"),
            "  %-20s %s" % ("list", "list all commands"),
            "  %-20s %s" % ("exit", "leave interactive mode"),
            "",
            "Examples:",
            "  1. help for a command: help <command>",
            "  2. run a command: <command> [arguments...] [options...]",
            "  3. inline help: <command> -h or <command> --help",
        ))
        return "\n".join(lines)

    def format_suggestions(self, suggestions):
        if not suggestions:
            return "Use 'list' to see all available commands"
        lines = ["Did you mean one of these?"]
        lines.extend("  %s - %s" % (definition.name, definition.description) for definition in suggestions)
        return "\n".join(lines)

    def render(self, text):
        """Return text as a rich Text, styled when colorful is on."""
        rendered = Text(text)
        if not self.colorful:
            return rendered
        styles = defaultdict(str, self.__palette__ | getattr(sys.modules.get("__main__"), "__styles__", {}))
        rendered.highlight_regex(_CATEGORY, styles["section-label"])
        rendered.highlight_regex(_LABEL, styles["section-label"])
        rendered.highlight_regex(re.compile(r"^=+$", re.MULTILINE), styles["rule"])
        rendered.highlight_regex(re.compile(r"^Use '[^\n]*$", re.MULTILINE), styles["hint"])
        return rendered


__all__ = (
    "RULE",
    "HelpFormatter",
)
