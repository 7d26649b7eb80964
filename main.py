import logging

from rich.pretty import pprint

from conch import *

__prog__ = "conch-demo"

manager = create_manager(prompt="conch> ")


@manager.command(
    category="Math",
    aliases=["plus"],
    parameters=[
        ParameterDefinition("a", "first operand", required=True, type=ParamType.INTEGER),
        ParameterDefinition("b", "second operand", required=True, type=ParamType.INTEGER),
    ],
    examples=["add 3 4"],
)
def add(context):
    """Add two integers."""
    print(int(context.get_argument(0)) + int(context.get_argument(1)))


@manager.command(
    category="Text",
    parameters=[ParameterDefinition("...", "words to print")],
    options=[OptionDefinition("upper", "u", "print in upper case")],
)
def echo(context):
    """Print the arguments back."""
    text = " ".join(context.args)
    print(text.upper() if context.has_flag("u") or context.has_flag("upper") else text)


if __name__ == '__main__':
    logging.basicConfig(level=logging.DEBUG if "-v" in __import__("sys").argv else logging.WARNING)
    pprint(add)
    manager.run_interactive()
