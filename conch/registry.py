"""
Command registry and unknown-name suggestions.

CommandRegistry
- Owns every registered CommandDefinition, keyed by name (registration order kept).
- alias -> name map: aliases point at names, never at definitions, so replacing a
  definition under the same name keeps its aliases working.
- category -> [names] index in registration order. Registering the same name twice
  under a category lists it twice.

SuggestionEngine
- Scores canonical names (aliases are ignored) against an unknown name and returns
  at most `limit` similar definitions, in registration order.
"""
import logging

from .commands import CommandDefinition
from .faults import RegistrationError, DuplicateCommandWarning, ReboundAliasWarning, trigger
from .utils import *

logger = logging.getLogger(__name__)

DEFAULT_MAX_SUGGESTIONS = 5
SIMILARITY_THRESHOLD = 0.6


class CommandRegistry:
    """
    Registry of command definitions.

    Options (keyword-only)
    - shell: print warnings on the console instead of emitting them through
      warnings.warn (used by interactive managers).
    - console: rich console receiving registration faults (stderr when Unset).
    """

    def __init__(self, *, shell=False, console=Unset):
        self._commands = {}
        self._aliases = {}
        self._categories = {}
        self._shell = bool(shell)
        self._console = coalesce(console)

    def _trigger(self, fault):
        trigger(fault, console=self._console, shell=self._shell)

    @property
    def names(self):
        return list(self._commands)

    @property
    def aliases(self):
        return dict(self._aliases)

    @property
    def categories(self):
        return {category: list(names) for category, names in self._categories.items()}

    def __len__(self):
        return len(self._commands)

    def __iter__(self):
        return iter(list(self._commands.values()))

    def __contains__(self, name):
        return self.find(name) is not None

    def register(self, definition, /):
        """
        Register a definition; returns True on success.

        - An empty name is reported as RegistrationError and nothing is inserted.
        - An existing name is replaced after a DuplicateCommandWarning.
        """
        if not isinstance(definition, CommandDefinition):
            raise TypeError("register() argument must be a command definition")

        if not (name := definition.name):
            self._trigger(RegistrationError("command name cannot be empty"))
            return False

        if (previous := self._commands.get(name)) is not None:
            self._trigger(DuplicateCommandWarning(
                "command %r already exists and will be replaced" % name,
                name=name,
            ))
            if previous is not definition:
                previous._registry = None

        self._commands[name] = definition
        for alias in definition.aliases:
            self._link_alias(alias, name)
        self._categories.setdefault(definition.category, []).append(name)
        definition._registry = self

        logger.debug("registered command %r (category=%r, aliases=%r)", name, definition.category, definition.aliases)
        return True

    def register_all(self, *definitions):
        return all([self.register(definition) for definition in definitions])

    def create_command(self, name, description="", handler=Unset, /, **metadata):
        """
        Build, register and return a definition for further fluent configuration.

            registry.create_command("echo", "print arguments", echo).add_parameter("...")
        """
        definition = CommandDefinition(name, description, handler, **metadata)
        self.register(definition)
        return definition

    def find(self, name, /):
        """
        Resolve a name or an alias (one hop) to its definition, or None.
        """
        try:
            return self._commands[name]
        except KeyError:
            pass
        try:
            return self._commands[self._aliases[name]]
        except KeyError:
            return None

    def _link_alias(self, alias, name):
        if not alias or alias == name:
            return
        if (current := self._aliases.get(alias)) is not None and current != name:
            self._trigger(ReboundAliasWarning(
                "alias %r moved from command %r to %r" % (alias, current, name),
                alias=alias,
                hint="each alias resolves to a single command",
            ))
        self._aliases[alias] = name

    def _move_category(self, name, old, new):
        names = self._categories.get(old, [])
        if name in names:
            names.remove(name)
            if not names:
                del self._categories[old]
        self._categories.setdefault(new, []).append(name)


def is_similar(name, candidate, /):
    """
    Tell whether candidate looks like a misspelling of name.

    rules
    - candidate starts with name, or
    - the lengths differ by at most 2 and more than 60% of the positions (over
      the longer length) hold the same character.
    """
    if not name or not candidate:
        return False
    if candidate.startswith(name):
        return True
    if abs(len(name) - len(candidate)) > 2:
        return False
    matches = sum(1 for left, right in zip(name, candidate) if left == right)
    return matches / max(len(name), len(candidate)) > SIMILARITY_THRESHOLD


class SuggestionEngine:
    def __init__(self, limit=DEFAULT_MAX_SUGGESTIONS):
        self.limit = limit

    @property
    def limit(self):
        return self._limit

    @limit.setter
    def limit(self, limit):
        if not isinstance(limit, int) or isinstance(limit, bool):
            raise TypeError("SuggestionEngine 'limit' must be an integer")
        if limit < 0:
            raise ValueError("SuggestionEngine 'limit' must be zero or positive")
        self._limit = limit

    def suggest(self, name, registry, /):
        """
        Return up to `limit` definitions whose names resemble name.
        """
        suggestions = []
        for definition in registry:
            if len(suggestions) >= self._limit:
                break
            if is_similar(name, definition.name):
                suggestions.append(definition)
        return suggestions


__all__ = (
    "DEFAULT_MAX_SUGGESTIONS",
    "CommandRegistry",
    "SuggestionEngine",
    "is_similar",
)
