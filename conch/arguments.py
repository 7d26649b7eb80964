r"""
Conch argument definitions.

Overview
- ParamType: the fixed set of type tags a positional parameter may carry
  (string, int, float, bool, file, path, command). Tags are descriptive: they
  show up in help output and let handlers pick a converter, but the parser never
  converts values itself.
- ParameterDefinition: one positional parameter of a command.
- OptionDefinition: one named option, reachable through a long name (--name),
  a short name (-n), or both.

Introspection & representation
- DefinitionType metaclass provides stable __repr__/__rich_repr__ and exposes
  every field listed in __introspectable__ as a read-only property, so a
  definition cannot be edited once built.

Metadata (sanitized on construction)
- Strings must be str; names are trimmed and must not be empty.
- Parameter names must be unique within a command. The name "..." (VARIADIC)
  marks the last parameter as accepting any number of trailing arguments.
- Option long names are given without "--", short names without "-" and are at
  most one character long. One of the two may be empty, not both.

Quick example:
    >>> ParameterDefinition("source", "file to copy", required=True, type="file").usage
    '<source>'
    >>> OptionDefinition("port", "p", "listen port", requires_value=True, value_type="number").usage
    '-p, --port <number>'
"""
import builtins
import re
from enum import StrEnum

from .utils import *

VARIADIC = "..."


class ParamType(StrEnum):
    STRING = "string"
    INTEGER = "int"
    FLOAT = "float"
    BOOL = "bool"
    FILE = "file"
    PATH = "path"
    COMMAND = "command"


class DefinitionType(type):
    """
    Metaclass for definition classes.

    Responsibilities
    - Derive __typename__ from the class name (camel-case split with hyphens)
      for messages, e.g. ParameterDefinition -> "parameter-definition".
    - Mirror every name in __introspectable__ into a read-only property backed
      by the "_" prefixed slot.
    - Provide __repr__/__rich_repr__ over the same names (or __displayable__).
    """
    __introspectable__ = ()
    __displayable__ = Unset

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            return "%s(%s)" % (
                type(self).__typename__,
                ", ".join("%s=%r" % pair for pair in self.__rich_repr__()),
            )
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _sanitize_string(cls, field, value, /, *, empty=True, strip=False):
    if not isinstance(value, str):
        raise TypeError(f"{cls.__typename__} {field!r} must be a string")
    if strip:
        value = value.strip()
    if not empty and not value:
        raise ValueError(f"{cls.__typename__} {field!r} must be a non-empty string")
    return value


def _sanitize_bool(cls, field, value, /):
    if not isinstance(value, bool):
        raise TypeError(f"{cls.__typename__} {field!r} must be a boolean")
    return value


class ParameterDefinition(metaclass=DefinitionType):
    """
    Positional parameter of a command.

    Fields
    - name: shown in usage and help; VARIADIC ("...") marks a variadic tail.
    - description: one-line help.
    - required: rendered as <name> when True, [name] otherwise.
    - default: informational default shown in help ("" for none).
    - type: ParamType tag (help shows it unless it is the string type).
    """
    __introspectable__ = (
        "name",
        "description",
        "required",
        "default",
        "type",
    )
    __slots__ = tuple("_" + name for name in __introspectable__)

    def __init__(self, name, description="", required=False, default="", type=ParamType.STRING):
        cls = builtins.type(self)
        self._name = _sanitize_string(cls, "name", name, empty=False, strip=True)
        self._description = _sanitize_string(cls, "description", description)
        self._required = _sanitize_bool(cls, "required", required)
        self._default = _sanitize_string(cls, "default", default)
        try:
            self._type = ParamType(type)
        except ValueError:
            raise ValueError(f"{cls.__typename__} 'type' must be one of {', '.join(map(str, ParamType))}") from None

    @property
    def variadic(self):
        return self._name == VARIADIC

    @property
    def usage(self):
        return f"<{self._name}>" if self._required else f"[{self._name}]"

    def __eq__(self, other):
        if not isinstance(other, ParameterDefinition):
            return NotImplemented
        return tuple(self.__rich_repr__()) == tuple(other.__rich_repr__())

    def __hash__(self):
        return hash(tuple(self.__rich_repr__()))


class OptionDefinition(metaclass=DefinitionType):
    """
    Named option of a command.

    Fields
    - name: long form without "--" ("" for none).
    - short_name: single character without "-" ("" for none).
    - description: one-line help.
    - requires_value: whether the option expects a value (shown as a placeholder).
    - default: informational default shown in help.
    - value_type: free-form placeholder label, "value" when empty.

    Lookup helpers
    - present_in(context): True when the option appears as flag or with a value
      under any of its names.
    - value_in(context, default): the value given under the long name, then under
      the short name, then default (which falls back to the declared default).
    """
    __introspectable__ = (
        "name",
        "short_name",
        "description",
        "requires_value",
        "default",
        "value_type",
    )
    __slots__ = tuple("_" + name for name in __introspectable__)

    def __init__(self, name="", short_name="", description="", requires_value=False, default="", value_type=""):
        cls = builtins.type(self)
        self._name = _sanitize_string(cls, "name", name, strip=True)
        self._short_name = _sanitize_string(cls, "short_name", short_name, strip=True)
        self._description = _sanitize_string(cls, "description", description)
        self._requires_value = _sanitize_bool(cls, "requires_value", requires_value)
        self._default = _sanitize_string(cls, "default", default)
        self._value_type = _sanitize_string(cls, "value_type", value_type, strip=True)

        if not self._name and not self._short_name:
            raise ValueError(f"{cls.__typename__} requires a long or a short name")
        if self._name.startswith("-"):
            raise ValueError(f"{cls.__typename__} 'name' must be given without leading dashes")
        if len(self._short_name) > 1:
            raise ValueError(f"{cls.__typename__} 'short_name' must be a single character")
        if self._short_name == "-":
            raise ValueError(f"{cls.__typename__} 'short_name' must not be a dash")

    @property
    def names(self):
        return tuple(name for name in (self._name, self._short_name) if name)

    @property
    def usage(self):
        usage = ""
        if self._short_name:
            usage += "-" + self._short_name
            if self._name:
                usage += ", "
        if self._name:
            usage += "--" + self._name
        if self._requires_value:
            usage += " <%s>" % (self._value_type or "value")
        return usage

    def present_in(self, context):
        return any(context.has_flag(name) or context.get_option(name) is not None for name in self.names)

    def value_in(self, context, default=Unset):
        for name in self.names:
            if (value := context.get_option(name)) is not None:
                return value
        return coalesce(default, self._default)

    def __eq__(self, other):
        if not isinstance(other, OptionDefinition):
            return NotImplemented
        return tuple(self.__rich_repr__()) == tuple(other.__rich_repr__())

    def __hash__(self):
        return hash(tuple(self.__rich_repr__()))


__all__ = (
    "VARIADIC",
    "ParamType",
    "ParameterDefinition",
    "OptionDefinition",
)
