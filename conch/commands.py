"""
Conch command layer: command definitions, handlers, validation and help text.

What this module provides
- Handler: the capability every command body implements, execute(context) -> outcome.
  Any object with a callable execute() qualifies (checked structurally), and plain
  callables taking the context are accepted everywhere a handler is expected.
- CommandDefinition: metadata + parameters + options + handler of one command,
  built through a fluent interface:

      definition = (
          CommandDefinition("cp", "copy a file", copy_file)
          .add_parameter("source", "file to copy", required=True, type="file")
          .add_parameter("dest", "target path", required=True, type="file")
          .add_option("force", "f", "overwrite the target")
          .add_example("cp a.txt b.txt")
      )

- command(...): create a CommandDefinition from a function, directly or as a decorator.

Handler results
- False is a semantic failure; None or any other truthy value is a success.
- An Outcome is passed through untouched, so a handler can attach a message.

Validation
- validate_arguments(context) is positional: parameter i is "missing" when it is
  required and fewer than i + 1 arguments were given; more arguments than declared
  parameters is an error unless the last parameter is the variadic "...".

Help
- generate_usage() and generate_help(detailed) render plain text with a stable
  section order: header (name, aliases), description, category, version, author,
  usage, parameters, options and, for detailed help, examples. Empty sections
  are left out.
"""
import builtins
import inspect
import logging
from abc import ABC, abstractmethod

from .arguments import DefinitionType, ParameterDefinition, OptionDefinition, VARIADIC
from .faults import Outcome, MissingParameterError, TooManyArgumentsError
from .utils import *

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = "General"


class Handler(ABC):
    """
    Command capability: execute(context) -> bool | None | Outcome.

    Subclassing is optional; isinstance(x, Handler) holds for any object that
    exposes a callable execute attribute.
    """

    @abstractmethod
    def execute(self, context):
        raise NotImplementedError

    @classmethod
    def __subclasshook__(cls, subclass):
        if cls is Handler:
            return callable(getattr(subclass, "execute", None)) or NotImplemented
        return NotImplemented


def _resolve_handler(cls, handler, /):
    """
    Return the callable to invoke for a handler (Unset/None meaning no handler).
    """
    if handler is Unset or handler is None:
        return None
    if isinstance(handler, Handler):
        return handler.execute
    if callable(handler):
        return handler
    raise TypeError(f"{cls.__typename__} 'handler' must be callable or implement execute()")


def _normalize_result(result, /):
    if isinstance(result, Outcome):
        return result
    return True if result is None else bool(result)


class CommandDefinition(metaclass=DefinitionType):
    """
    Full definition of one command.

    Lifecycle
    - Created by the application at startup, usually through the fluent setters.
    - Owned by a CommandRegistry once registered. While bound, alias and category
      changes made through the setters are reflected in the registry indices.

    Notes
    - Collections are exposed as copies (see mirror); mutate through the setters.
    - Parameters after a variadic "..." parameter are rejected, as are duplicate
      parameter names.
    """
    __introspectable__ = (
        "name",
        "description",
        "category",
        "usage",
        "aliases",
        "parameters",
        "options",
        "examples",
        "version",
        "author",
        "help_text",
    )
    __displayable__ = (
        "name",
        "description",
        "category",
        "aliases",
        "parameters",
        "options",
    )

    def __init__(
            self,
            name="",
            description="",
            handler=Unset,
            /,
            *,
            category=Unset,
            usage="",
            aliases=(),
            parameters=(),
            options=(),
            examples=(),
            version="",
            author="",
            help_text="",
    ):
        self._registry = None
        self._name = ""
        self._description = ""
        self._category = DEFAULT_CATEGORY
        self._usage = ""
        self._aliases = []
        self._parameters = []
        self._options = []
        self._examples = []
        self._version = ""
        self._author = ""
        self._help_text = ""
        self._handler = None

        self.set_name(name)
        self.set_description(description)
        self.set_handler(handler)
        self.set_category(coalesce(category, DEFAULT_CATEGORY))
        self.set_usage(usage)
        self.set_version(version)
        self.set_author(author)
        self.set_help_text(help_text)
        for alias in aliases:
            self.add_alias(alias)
        for parameter in parameters:
            self.add_parameter(parameter)
        for option in options:
            self.add_option(option)
        for example in examples:
            self.add_example(example)

    def _string(self, field, value):
        if not isinstance(value, str):
            raise TypeError(f"{type(self).__typename__} {field!r} must be a string")
        return value

    # ── fluent setters ────────────────────────────────────────────────────

    def set_name(self, name):
        name = self._string("name", name).strip()
        if self._registry is not None and name != self._name:
            raise ValueError(f"{type(self).__typename__} cannot be renamed while registered")
        self._name = name
        return self

    def set_description(self, description):
        self._description = self._string("description", description)
        return self

    def set_category(self, category):
        category = self._string("category", category).strip() or DEFAULT_CATEGORY
        if self._registry is not None and category != self._category:
            self._registry._move_category(self._name, self._category, category)
        self._category = category
        return self

    def set_usage(self, usage):
        self._usage = self._string("usage", usage)
        return self

    def set_handler(self, handler):
        self._handler = _resolve_handler(type(self), handler)
        return self

    def set_help_text(self, text):
        self._help_text = self._string("help_text", text)
        return self

    def set_version(self, version):
        self._version = self._string("version", version)
        return self

    def set_author(self, author):
        self._author = self._string("author", author)
        return self

    def add_alias(self, alias):
        alias = self._string("alias", alias).strip()
        if not alias:
            raise ValueError(f"{type(self).__typename__} alias must be a non-empty string")
        self._aliases.append(alias)
        if self._registry is not None:
            self._registry._link_alias(alias, self._name)
        return self

    def add_parameter(self, parameter, /, *args, **kwargs):
        """
        Append a parameter, given either as a ParameterDefinition or as the
        arguments of one (name, description, required, default, type).
        """
        if not isinstance(parameter, ParameterDefinition):
            parameter = ParameterDefinition(parameter, *args, **kwargs)
        elif args or kwargs:
            raise TypeError(f"{type(self).__typename__} add_parameter() takes a definition or its fields, not both")

        if self._parameters and self._parameters[-1].variadic:
            raise ValueError(f"{type(self).__typename__} variadic parameter must be the last parameter")
        if any(existing.name == parameter.name for existing in self._parameters):
            raise ValueError(f"{type(self).__typename__} parameter name {parameter.name!r} is already in use")
        self._parameters.append(parameter)
        return self

    def add_option(self, option, /, *args, **kwargs):
        """
        Append an option, given either as an OptionDefinition or as the arguments
        of one (name, short_name, description, requires_value, default, value_type).
        """
        if not isinstance(option, OptionDefinition):
            option = OptionDefinition(option, *args, **kwargs)
        elif args or kwargs:
            raise TypeError(f"{type(self).__typename__} add_option() takes a definition or its fields, not both")
        self._options.append(option)
        return self

    def add_example(self, example):
        self._examples.append(self._string("example", example))
        return self

    # ── behavior ──────────────────────────────────────────────────────────

    @property
    def variadic(self):
        return bool(self._parameters) and self._parameters[-1].variadic

    @property
    def is_executable(self):
        return self._handler is not None

    def find_option(self, key):
        """Return the option answering to key (long or short name), or None."""
        for option in self._options:
            if key in option.names:
                return option
        return None

    def execute(self, context):
        if self._handler is None:
            return False
        return _normalize_result(self._handler(context))

    def validate_arguments(self, context):
        """
        Check the positional argument count against the declared parameters.

        returns
        - Outcome.ok() when the arguments fit.
        - a failed Outcome carrying MissingParameterError or TooManyArgumentsError.
        """
        count = context.argument_count

        for index, parameter in enumerate(self._parameters):
            if parameter.required and index >= count:
                return Outcome.failed(MissingParameterError(
                    "missing required parameter: %s" % parameter.name,
                    parameter=parameter,
                    hint="usage: %s" % self.generate_usage(),
                ))

        if not self.variadic and count > len(self._parameters):
            return Outcome.failed(TooManyArgumentsError(
                "too many arguments, at most %d allowed" % len(self._parameters),
                given=count,
                hint="usage: %s" % self.generate_usage(),
            ))

        return Outcome.ok()

    def generate_usage(self):
        if self._usage:
            return self._usage
        parts = [self._name]
        parts.extend(parameter.usage for parameter in self._parameters)
        if self._options:
            parts.append("[options...]")
        return " ".join(parts)

    def generate_help(self, detailed=False):
        """
        Render help text.

        A custom help_text replaces the generated text unless detailed help is asked.
        """
        if self._help_text and not detailed:
            return self._help_text

        lines = []
        header = "Command: %s" % self._name
        if self._aliases:
            header += " (aliases: %s)" % ", ".join(self._aliases)
        lines.append(header)

        if self._description:
            lines.append("Description: %s" % self._description)
        if self._category and self._category != DEFAULT_CATEGORY:
            lines.append("Category: %s" % self._category)
        if self._version:
            lines.append("Version: %s" % self._version)
        if self._author:
            lines.append("Author: %s" % self._author)

        lines.append("")
        lines.append("Usage: %s" % self.generate_usage())

        if self._parameters:
            lines.extend(("", "Parameters:"))
            for parameter in self._parameters:
                line = "  %-20s %s" % (parameter.usage, parameter.description)
                if parameter.default:
                    line += " [default: %s]" % parameter.default
                if parameter.type != "string":
                    line += " (%s)" % parameter.type
                lines.append(line.rstrip())

        if self._options:
            lines.extend(("", "Options:"))
            for option in self._options:
                line = "  %-40s %s" % (option.usage, option.description)
                if option.default:
                    line += " [default: %s]" % option.default
                lines.append(line.rstrip())

        if self._examples and detailed:
            lines.extend(("", "Examples:"))
            lines.extend("  %s" % example for example in self._examples)

        return "\n".join(lines)


def command(source=Unset, /, **metadata):
    """
    Create a CommandDefinition from a function, or return a decorator that will.

    Modes
    - Direct:     definition = command(func, name="x", parameters=[...])
    - Decorator:  @command(name="x", category="Files")
                  def x(context): ...

    Defaults
    - name: the function's __name__.
    - description: the first line of the function's docstring.
    - every other keyword is forwarded to CommandDefinition.
    """
    @rename("command")
    def wrapper(source, /):
        if not builtins.callable(source) and not isinstance(source, Handler):
            raise TypeError("@command() must be applied to a callable or a handler")
        options = dict(metadata)
        name = options.pop("name", getattr(source, "__name__", type(source).__name__.lower()))
        description = options.pop("description", (inspect.getdoc(source) or "").partition("\n")[0])
        return CommandDefinition(name, description, source, **options)

    return wrapper(source) if source is not Unset else wrapper


__all__ = (
    "DEFAULT_CATEGORY",
    "Handler",
    "CommandDefinition",
    "command",
)
