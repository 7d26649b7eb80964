"""
Conch command manager: registration front-end, dispatcher and entry points.

Entry points (all return a boolean success indicator)
- process_command(context)   dispatch an already classified CommandContext.
- process_string(line)       tokenize + classify one line of free text.
- process_args(argv)         classify an argv-like sequence (argv[0] = command name).
- process_arg_loop(argv)     batch mode: argv[0] is the program, every token not
                             starting with '-' opens a new command that greedily
                             takes the following non-dash tokens as its arguments.
- run_interactive(stdin)     read-dispatch loop until EOF, "exit" or "quit".

Dispatch (dispatch(context) -> Outcome)
1. empty command name -> success, nothing happens.
2. unknown name -> UnknownCommandError plus suggestions -> failure.
3. -h / --help present -> detailed help, the handler is not called -> success.
4. argument count validation -> ValidationError (+ help when auto_help) -> failure.
5. handler call; exceptions become ExecutionError, False becomes
   CommandFailedError (+ help when auto_help) -> failure.

Nothing raised by a handler escapes dispatch(); every path ends in an Outcome.

Configuration (keyword-only, read-only properties, change with configure())
- prompt="> ", auto_help=True, verbose_errors=True, colorful=True, max_suggestions=5.

Output
- Regular output (help, listings, suggestions) goes to the stdout console; faults go
  to the stderr console. Pass file objects as stdout=/stderr= to redirect them.
"""
import logging
import sys
from collections import deque

from rich.console import Console
from rich.text import Text

from .arguments import OptionDefinition, ParameterDefinition, ParamType
from .commands import CommandDefinition, command
from .context import CommandContext
from .faults import (
    Outcome,
    UnknownCommandError,
    ExecutionError,
    CommandFailedError,
    trigger,
)
from .help import HelpFormatter
from .parsing import classify, parse
from .registry import CommandRegistry, SuggestionEngine, DEFAULT_MAX_SUGGESTIONS
from .utils import *

logger = logging.getLogger(__name__)

DEFAULT_PROMPT = "> "
EXIT_WORDS = frozenset({"exit", "quit"})
HELP_FLAGS = ("h", "help")

GLOBAL_OPTIONS = (
    OptionDefinition("help", "h", "show help"),
    OptionDefinition("verbose", "v", "verbose output"),
    OptionDefinition("quiet", "q", "quiet mode, less output"),
    OptionDefinition("version", "V", "show version information"),
    OptionDefinition("config", "c", "configuration file", requires_value=True, value_type="path"),
)


class CommandManager:
    """
    Owns a CommandRegistry and dispatches command contexts against it.

    The registry is created by the manager unless one is passed in; either way the
    built-in "help" and "list" commands are registered first (builtins=False skips
    them).
    """
    prompt = mirror("prompt")
    auto_help = mirror("auto_help")
    verbose_errors = mirror("verbose_errors")
    colorful = mirror("colorful")
    max_suggestions = mirror("max_suggestions")

    def __init__(
            self,
            registry=Unset,
            /,
            *,
            prompt=Unset,
            auto_help=Unset,
            verbose_errors=Unset,
            colorful=Unset,
            max_suggestions=Unset,
            stdout=Unset,
            stderr=Unset,
            builtins=True,
    ):
        self._prompt = DEFAULT_PROMPT
        self._auto_help = True
        self._verbose_errors = True
        self._colorful = True
        self._max_suggestions = DEFAULT_MAX_SUGGESTIONS

        self._stdout = Console(file=coalesce(stdout), highlight=False)
        self._stderr = Console(file=coalesce(stderr), stderr=stderr is Unset, highlight=False)
        self._formatter = HelpFormatter()
        self._suggestions = SuggestionEngine()

        if registry is Unset:
            registry = CommandRegistry(shell=True, console=self._stderr)
        elif not isinstance(registry, CommandRegistry):
            raise TypeError("CommandManager 'registry' must be a command registry")
        self._registry = registry

        self.configure(
            prompt=coalesce(prompt, self._prompt),
            auto_help=coalesce(auto_help, self._auto_help),
            verbose_errors=coalesce(verbose_errors, self._verbose_errors),
            colorful=coalesce(colorful, self._colorful),
            max_suggestions=coalesce(max_suggestions, self._max_suggestions),
        )

        if builtins:
            self._setup_builtin_commands()

    @property
    def registry(self):
        return self._registry

    @property
    def global_options(self):
        return list(GLOBAL_OPTIONS)

    def configure(self, **changes):
        """
        Update configuration values; unknown keys raise TypeError.
        """
        for key, value in changes.items():
            match key:
                case "prompt":
                    if not isinstance(value, str):
                        raise TypeError("CommandManager 'prompt' must be a string")
                case "auto_help" | "verbose_errors" | "colorful":
                    value = bool(value)
                case "max_suggestions":
                    self._suggestions.limit = value
                case _:
                    raise TypeError(f"CommandManager has no configuration value {key!r}")
            setattr(self, "_" + key, value)

        self._formatter.colorful = self._colorful
        self._stdout.no_color = not self._colorful
        self._stderr.no_color = not self._colorful
        return self

    # ── registration ──────────────────────────────────────────────────────

    def register(self, definition, /):
        return self._registry.register(definition)

    def register_commands(self, *definitions):
        return self._registry.register_all(*definitions)

    def create_command(self, name, description="", handler=Unset, /, **metadata):
        return self._registry.create_command(name, description, handler, **metadata)

    def command(self, source=Unset, /, **metadata):
        """
        Decorator form of create_command:

            @manager.command(parameters=[ParameterDefinition("text", required=True)])
            def echo(context): ...
        """
        @rename("command")
        def wrapper(source, /):
            definition = command(source, **metadata)
            self.register(definition)
            return definition

        return wrapper(source) if source is not Unset else wrapper

    def find_command(self, name, /):
        return self._registry.find(name)

    def command_exists(self, name, /):
        return self._registry.find(name) is not None

    def get_command_list(self):
        return sorted(self._registry.names)

    def get_commands_by_category(self):
        return self._registry.categories

    # ── output ────────────────────────────────────────────────────────────

    def _print(self, text, /):
        self._stdout.print(self._formatter.render(text), soft_wrap=True)

    def _report(self, fault, /):
        return trigger(fault, console=self._stderr, colorful=self._colorful, shell=True)

    def _show_usage(self, definition, heading, /):
        if self._auto_help:
            self._print("\n%s\n%s" % (heading, definition.generate_help()))

    # ── dispatch ──────────────────────────────────────────────────────────

    def dispatch(self, context, /):
        """
        Resolve, validate and execute one context; returns an Outcome.
        """
        if not isinstance(context, CommandContext):
            raise TypeError("dispatch() argument must be a command context")

        if not (name := context.command_name):
            return Outcome.ok()

        if (definition := self._registry.find(name)) is None:
            return Outcome.failed(self.handle_unknown_command(name))

        if any(context.has_flag(flag) for flag in HELP_FLAGS) or context.get_option("help") is not None:
            self._print(definition.generate_help(True))
            return Outcome.ok()

        if not (outcome := definition.validate_arguments(context)):
            self._report(outcome.fault)
            self._show_usage(definition, "Usage help:")
            logger.debug("command %r rejected: %s", name, outcome.message)
            return outcome

        try:
            result = definition.execute(context)
        except Exception as exception:
            logger.debug("command %r raised", name, exc_info=True)
            fault = self._report(ExecutionError(
                "command %r raised %s: %s" % (definition.name, type(exception).__name__, exception),
                exception=exception,
                hint="see the usage below" if self._auto_help else "run '%s --help' for usage" % definition.name,
            ))
            self._show_usage(definition, "See usage:")
            return Outcome.failed(fault)

        outcome = result if isinstance(result, Outcome) else Outcome(result)
        if not outcome:
            fault = self._report(outcome.fault or CommandFailedError(
                outcome.message or "command %r failed" % definition.name,
                hint="check the arguments and options given",
            ))
            self._show_usage(definition, "Command failed, see usage:")
            return Outcome.failed(fault)

        logger.debug("command %r succeeded", name)
        return outcome

    def handle_unknown_command(self, name, /):
        """
        Report an unknown command and print suggestions; returns the fault.
        """
        suggestions = self._suggestions.suggest(name, self._registry)
        fault = self._report(UnknownCommandError(
            "unknown command %r" % name,
            input=name,
            suggestions=[definition.name for definition in suggestions],
            hint=("did you mean %r?" % suggestions[0].name) if suggestions else UnknownCommandError.__hint__,
        ))
        self._print(self._formatter.format_suggestions(suggestions))
        return fault

    def process_command(self, context, /):
        return self.dispatch(context).success

    def process_string(self, line, /):
        return self.process_command(parse(line))

    def process_args(self, argv=Unset, /):
        """
        Dispatch an argv-like sequence; argv[0] is the command name.

        When argv is not given, sys.argv[1:] is used (the program name skipped).
        """
        argv = list(coalesce(argv, sys.argv[1:]))
        if not argv:
            return True
        return self.process_command(classify(argv))

    def process_arg_loop(self, argv=Unset, /):
        """
        Batch mode over argv[1:] (argv defaults to sys.argv); True only when every
        dispatched command succeeded. Dash-prefixed tokens between commands are skipped.
        """
        stream = deque(list(coalesce(argv, sys.argv))[1:])
        success = True

        while stream:
            if (token := stream.popleft()).startswith("-"):
                continue
            context = CommandContext(token)
            while stream and not stream[0].startswith("-"):
                context.add_argument(stream.popleft())
            if not self.process_command(context):
                success = False

        return success

    # ── help system ───────────────────────────────────────────────────────

    def show_all_commands(self, by_category=True):
        self._print("\n%s\n" % self._formatter.format_listing(self._registry, by_category))

    def show_command_help(self, name, /):
        if (definition := self._registry.find(name)) is not None:
            self._print(definition.generate_help(True))
            return True
        self._print("Command not found: %s" % name)
        self.show_all_commands()
        return False

    def show_global_help(self):
        self._print("\n%s\n" % self._formatter.format_global(GLOBAL_OPTIONS))

    def _setup_builtin_commands(self):
        self.register(
            CommandDefinition("help", "show help information", self._help_handler)
            .add_alias("?")
            .add_parameter(ParameterDefinition("command", "command name", type=ParamType.COMMAND))
            .add_example("help              # global help")
            .add_example("help <command>    # help for one command")
        )
        self.register(
            CommandDefinition("list", "list all available commands", self._list_handler)
            .add_option(OptionDefinition("category", "c", "group commands by category"))
            .add_example("list              # all commands, sorted")
            .add_example("list -c           # grouped by category")
        )

    def _help_handler(self, context):
        if context.argument_count > 0:
            self.show_command_help(context.get_argument(0))
        else:
            self.show_global_help()
        return True

    def _list_handler(self, context):
        self.show_all_commands(context.has_flag("c") or context.has_flag("category"))
        return True

    # ── interactive loop ──────────────────────────────────────────────────

    def run_interactive(self, stdin=Unset, /):
        """
        Read lines from stdin (sys.stdin by default) and process them until EOF
        or an exit word. "help" and "list" alone map to global help and listing.
        """
        stdin = coalesce(stdin) or sys.stdin
        self._print("Interactive mode: 'help' for help, 'list' to list commands, 'exit' to quit\n")

        while True:
            self._stdout.print(Text(self._prompt), end="")
            try:
                line = stdin.readline()
            except KeyboardInterrupt:
                self._stdout.print()
                break
            if not line:
                break

            line = line.strip()
            if not line:
                continue
            if line in EXIT_WORDS:
                self._print("Bye!")
                break
            if line == "help":
                self.show_global_help()
                continue
            if line == "list":
                self.show_all_commands()
                continue

            if not self.process_string(line) and self._verbose_errors:
                self._print("Command failed, type 'help' for help")


def create_manager(**config):
    """Build a CommandManager with the given configuration (see CommandManager)."""
    return CommandManager(**config)


__all__ = (
    "DEFAULT_PROMPT",
    "GLOBAL_OPTIONS",
    "CommandManager",
    "create_manager",
)
