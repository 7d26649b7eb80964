"""
Conch faults (errors, warnings, outcomes) and rendering.

Scope
- FaultCode: stable numeric identifiers for every user-facing issue, grouped by
  domain (registration, routing, validation, execution, warnings).
- CommandException / CommandWarning: base types that carry a message plus
  options (title, code, hint, context) and render themselves through rich.
- Outcome: the result value returned across the dispatch boundary; handler
  failures become an Outcome instead of an escaping exception.
- trigger(): the single entry point used to surface a fault.

UX goals
- Short lowercased titles, one-sentence messages, a single actionable hint.
- Every failure is recoverable: faults are printed, never raised past the
  dispatcher, and the caller decides what to do with the boolean result.

Integration
- The registry and the manager build faults and call trigger(fault, console=...).
- Exceptions are printed on the given console (stderr by default).
- Warnings are printed in shell mode and emitted through warnings.warn otherwise,
  so library users can filter or assert on them.
- Host applications may define __prog__ (program label) and __styles__ (palette
  overrides) in __main__.
"""
import sys
import warnings
from collections import defaultdict
from dataclasses import dataclass
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.text import Text

from .utils import Unset, coalesce

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes (stable identifiers).

    grouping
    - registration (111xx): EMPTY_COMMAND_NAME
    - routing (112xx): UNKNOWN_COMMAND
    - validation (113xx): MISSING_PARAMETER, TOO_MANY_ARGUMENTS
    - execution (114xx): EXECUTION_FAILED, COMMAND_FAILED
    - warnings (12xxx): DUPLICATE_COMMAND, REBOUND_ALIAS

    normalize() lets a host remap codes to its own labels through a __codes__
    mapping in __main__; the numeric value is used otherwise.
    """
    # --- registration errors ---
    EMPTY_COMMAND_NAME = 11101

    # --- routing errors ---
    UNKNOWN_COMMAND    = 11201

    # --- validation errors ---
    MISSING_PARAMETER  = 11301
    TOO_MANY_ARGUMENTS = 11302

    # --- execution errors ---
    EXECUTION_FAILED   = 11401
    COMMAND_FAILED     = 11402

    # --- warnings ---
    DUPLICATE_COMMAND  = 12101
    REBOUND_ALIAS      = 12102

    def normalize(self):
        return str(getattr(sys.modules.get("__main__"), "__codes__", {}).get(self, self.value))


class _Fault:
    """
    Shared state and rendering for exceptions and warnings.

    Class-level defaults (__title__, __code__, __hint__) are used when the
    corresponding option was not given at construction or through __replace__.
    """
    __title__ = "fault"
    __code__ = Unset
    __hint__ = ""
    __palette__ = {}

    def __init__(self, message=Unset, /, **options):
        if not isinstance(message, str | Unset):
            raise TypeError(f"{type(self).__name__} message must be a string")
        super().__init__(coalesce(message, ""))
        self.message = coalesce(message, "")
        self.options = MappingProxyType(options)

    @property
    def title(self):
        return self.options.get("title", type(self).__title__)

    @property
    def code(self):
        return self.options.get("code", type(self).__code__)

    @property
    def hint(self):
        return self.options.get("hint", type(self).__hint__)

    def __str__(self):
        return self.message

    def __rich__(self):
        main = sys.modules.get("__main__")
        colorful = self.options.get("colorful", False)

        styles = defaultdict(str, type(self).__palette__ | getattr(main, "__styles__", {}))

        def text(fragment, style=""):
            if not fragment:
                return Text("")
            return Text(str(fragment), styles[style] if colorful else "")

        prog = getattr(main, "__prog__", self.options.get("prog", "conch"))
        code = self.code.normalize() if isinstance(self.code, FaultCode) else "-"

        header = Text.assemble(
            "[ ",
            text(prog, "prog-name"),
            " — ",
            text(code, "code"),
            " | ",
            text(self.title.title(), "title"),
            " ]",
        )
        renders = [header, text(self.message, "message")]
        if self.hint:
            renders.append(Text.assemble(text(" → ", "hint-arrow"), text(self.hint, "hint")))
        return Group(*renders)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class CommandException(_Fault, Exception):
    __palette__ = {
        "prog-name": "bold #E6E6F0",  # near-white program name
        "code": "bold #00E5FF",  # neon cyan fault code
        "title": "bold #FF4DA6",  # pink title
        "message": "#C8C8D0",
        "hint-arrow": "#9CE19C dim",
        "hint": "italic #9CE19C",
    }

    def __trigger__(self, output=None):
        (output or console).print(self, soft_wrap=True)


class RegistrationError(CommandException):
    __title__ = "invalid registration"
    __code__ = FaultCode.EMPTY_COMMAND_NAME
    __hint__ = "give the command a non-empty name before registering it"


class UnknownCommandError(CommandException):
    __title__ = "unknown command"
    __code__ = FaultCode.UNKNOWN_COMMAND
    __hint__ = "run 'list' to see all available commands"


class ValidationError(CommandException):
    __title__ = "invalid arguments"


class MissingParameterError(ValidationError):
    __title__ = "missing parameter"
    __code__ = FaultCode.MISSING_PARAMETER


class TooManyArgumentsError(ValidationError):
    __title__ = "too many arguments"
    __code__ = FaultCode.TOO_MANY_ARGUMENTS


class ExecutionError(CommandException):
    __title__ = "execution error"
    __code__ = FaultCode.EXECUTION_FAILED


class CommandFailedError(CommandException):
    __title__ = "command failed"
    __code__ = FaultCode.COMMAND_FAILED


class CommandWarning(_Fault, Warning):
    __palette__ = {
        "prog-name": "bold #E6E6F0",
        "code": "bold #FFB400",  # amber fault code for warnings
        "title": "bold #FFC2E0",
        "message": "#D6D6DE",
        "hint-arrow": "#B8EFAF dim",
        "hint": "italic #B8EFAF",
    }

    def __trigger__(self, output=None):
        if not self.options.get("shell", False):
            warnings.warn(self, stacklevel=4)
            return
        (output or console).print(self, soft_wrap=True)


class DuplicateCommandWarning(CommandWarning):
    __title__ = "duplicate command"
    __code__ = FaultCode.DUPLICATE_COMMAND
    __hint__ = "the previous definition was replaced"


class ReboundAliasWarning(CommandWarning):
    __title__ = "rebound alias"
    __code__ = FaultCode.REBOUND_ALIAS


@dataclass(frozen=True)
class Outcome:
    """
    result of processing one command.

    truthiness mirrors success, so an Outcome can be used wherever a boolean
    result is expected. failed outcomes carry the fault that caused them
    (None for a plain "handler returned False" without further detail).
    """
    success: bool
    message: str | None = None
    fault: CommandException | None = None

    def __bool__(self):
        return self.success

    @classmethod
    def ok(cls, message=None):
        return cls(True, message)

    @classmethod
    def failed(cls, fault):
        if isinstance(fault, CommandException):
            return cls(False, fault.message, fault)
        return cls(False, fault)


def trigger(fault, /, console=None, **options):
    """
    surface a fault.

    contract
    - fault must provide __trigger__ and __replace__ (see the base classes).
    - options are merged into a copy of the fault before it is triggered.
    - console is the rich console that receives printed faults (stderr when None).
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    fault = fault.__replace__(**options)
    fault.__trigger__(console)
    return fault


__all__ = (
    "FaultCode",
    "CommandException",
    "RegistrationError",
    "UnknownCommandError",
    "ValidationError",
    "MissingParameterError",
    "TooManyArgumentsError",
    "ExecutionError",
    "CommandFailedError",
    "CommandWarning",
    "DuplicateCommandWarning",
    "ReboundAliasWarning",
    "Outcome",
    "trigger",
)
