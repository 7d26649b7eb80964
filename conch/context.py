"""
Command invocation context.

A CommandContext is the structured form of one invocation: the command name,
the options given with a value, the flags given without one, the positional
arguments in input order, and free-form metadata set by the caller.

Contexts are filled by the classifier (see conch.parsing) and treated as
read-only afterwards; the public properties hand out copies.
"""
from .utils import mirror


class CommandContext:
    """
    Parsed invocation of a single command.

    Construction
    - CommandContext()                     -> empty context, filled through setters.
    - CommandContext.from_string(line)     -> tokenized and classified free text.
    - CommandContext.from_args(argv)       -> classified argv-like sequence
                                              (argv[0] is the command name).
    """
    __slots__ = ("_command_name", "_options", "_flags", "_args", "_metadata")

    command_name = mirror("command_name")
    options = mirror("options")
    flags = mirror("flags")
    args = mirror("args")
    metadata = mirror("metadata")

    def __init__(self, command_name=""):
        if not isinstance(command_name, str):
            raise TypeError("CommandContext 'command_name' must be a string")
        self._command_name = command_name
        self._options = {}
        self._flags = set()
        self._args = []
        self._metadata = {}

    @classmethod
    def from_string(cls, line, /):
        from .parsing import parse
        return parse(line, context=cls())

    @classmethod
    def from_args(cls, argv, /):
        from .parsing import classify
        return classify(argv, context=cls())

    def set_command_name(self, name):
        self._command_name = name

    def set_option(self, key, value):
        self._options[key] = value

    def get_option(self, key, default=None):
        return self._options.get(key, default)

    def set_flag(self, flag):
        self._flags.add(flag)

    def has_flag(self, flag):
        return flag in self._flags

    def add_argument(self, argument):
        self._args.append(argument)

    def get_argument(self, index, default=""):
        """Return the positional argument at index, or default when out of range."""
        if 0 <= index < len(self._args):
            return self._args[index]
        return default

    @property
    def argument_count(self):
        return len(self._args)

    def set_metadata(self, key, value):
        self._metadata[key] = value

    def get_metadata(self, key, default=None):
        return self._metadata.get(key, default)

    def clear(self):
        self._command_name = ""
        self._options.clear()
        self._flags.clear()
        self._args.clear()
        self._metadata.clear()

    def __eq__(self, other):
        if not isinstance(other, CommandContext):
            return NotImplemented
        return (
            self._command_name == other._command_name and
            self._options == other._options and
            self._flags == other._flags and
            self._args == other._args and
            self._metadata == other._metadata
        )

    __hash__ = None

    def __repr__(self):
        return "command-context(command_name=%r, options=%r, flags=%r, args=%r)" % (
            self._command_name, self._options, sorted(self._flags), self._args
        )

    def __rich_repr__(self):
        yield "command_name", self._command_name
        yield "options", self._options
        yield "flags", sorted(self._flags)
        yield "args", self._args
        if self._metadata:
            yield "metadata", self._metadata


__all__ = ("CommandContext",)
