r"""
Conch parsing layer: raw input -> tokens -> CommandContext.

Tokenizer
- tokenize(line) splits on whitespace, then glues chunks back together while the
  last emitted token opened a double quote without closing it. Finally one layer
  of surrounding double quotes is stripped from every token that both starts and
  ends with '"'.

      tokenize('echo "hello world" x')  -> ['echo', 'hello world', 'x']
      tokenize('say "unterminated here') -> ['say', '"unterminated here']

  Whitespace inside quotes collapses to a single space, and there is no escape
  syntax: this is deliberately simpler than shlex.

Classifier
- classify(tokens) reads token 0 as the command name and buckets the rest:
  • "--"            every remaining token is positional; option parsing stops.
  • "--key=value"   option key -> value (value may be empty).
  • "--key value"   option key -> value when the next token does not start with '-'.
  • "--key"         flag key otherwise.
  • "-k value"      option k -> value when the next token does not start with '-'.
  • "-k"            flag k otherwise.
  • "-xyz"          flags x, y and z (a cluster never takes values).
  • anything else   positional argument, input order preserved.

Known limitation
- A positional that starts with '-' (a negative number, for instance) is read as
  an option or a flag cluster. Pass such values after "--".
"""
import logging
from collections import deque

from .context import CommandContext

logger = logging.getLogger(__name__)

QUOTE = '"'
SEPARATOR = "--"


def _quoted(token):
    return len(token) > 0 and token[0] == QUOTE and token[-1] == QUOTE


def tokenize(line, /):
    """
    Split a raw line into shell-like tokens honoring double-quoted segments.

    Returns a list of strings; empty or blank input yields an empty list.
    """
    if not isinstance(line, str):
        raise TypeError("tokenize() argument must be a string")

    tokens = []
    for chunk in line.split():
        # glue onto a quote that is still open
        if tokens and tokens[-1].startswith(QUOTE) and not _quoted(tokens[-1]):
            tokens[-1] += " " + chunk
        else:
            tokens.append(chunk)

    return [token[1:-1] if _quoted(token) else token for token in tokens]


def _takes_value(stream):
    return bool(stream) and not stream[0].startswith("-")


def _parse_long(text, stream, context):
    key, separator, value = text.partition("=")
    if separator:
        context.set_option(key, value)
    elif _takes_value(stream):
        context.set_option(key, stream.popleft())
    else:
        context.set_flag(key)


def _parse_short(text, stream, context):
    if len(text) == 1:
        if _takes_value(stream):
            context.set_option(text, stream.popleft())
        else:
            context.set_flag(text)
        return
    # combined cluster, e.g. -rf
    for char in text:
        context.set_flag(char)


def classify(tokens, /, context=None):
    """
    Classify an argv-like token sequence into a CommandContext.

    parameters
    - tokens: Iterable[str]; tokens[0] is the command name.
    - context: CommandContext to fill (a new one is created when None).

    returns
    - the filled context. An empty sequence leaves the context untouched.
    """
    if context is None:
        context = CommandContext()

    stream = deque(tokens)
    for token in stream:
        if not isinstance(token, str):
            raise TypeError("classify() tokens must be strings")
    if not stream:
        return context

    context.set_command_name(stream.popleft())

    while stream:
        token = stream.popleft()

        if token == SEPARATOR:
            while stream:
                context.add_argument(stream.popleft())
            break
        elif len(token) > 2 and token.startswith("--"):
            _parse_long(token[2:], stream, context)
        elif len(token) > 1 and token.startswith("-"):
            _parse_short(token[1:], stream, context)
        else:
            context.add_argument(token)

    logger.debug("classified %r", context)
    return context


def parse(line, /, context=None):
    """Tokenize a line of free text and classify the tokens."""
    return classify(tokenize(line), context=context)


__all__ = (
    "tokenize",
    "classify",
    "parse",
)
