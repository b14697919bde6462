"""Console command parsing and dispatching.

Commands are typed as a single line.  The line is split into arguments with
:func:`split_args`, the first argument picks a handler registered on a
:class:`CommandParser`, and the handler receives every argument (including
its own name).  Handlers return an integer status: ``0`` means the turn can
advance, anything else asks the console to prompt again.
"""

from __future__ import annotations

from enum import Enum
from typing import Callable, Dict, Iterator, List, Optional

CommandHandler = Callable[[List[str]], Optional[int]]


class CommandErrorKind(Enum):
    PARSE = "parse"
    EMPTY = "empty"
    UNKNOWN = "unknown"
    EXECUTION = "execution"
    DUPLICATE = "duplicate"
    INVALID_ARGUMENT = "invalid-argument"


class CommandError(Exception):
    """Base class for every failure raised by the command engine."""

    kind = CommandErrorKind.PARSE

    def __init__(self, message: str = "", cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause
            self.__suppress_context__ = True


class ParseError(CommandError):
    kind = CommandErrorKind.PARSE


class EmptyCommandError(ParseError):
    kind = CommandErrorKind.EMPTY


class UnknownCommandError(CommandError):
    kind = CommandErrorKind.UNKNOWN


class CommandExecutionError(CommandError):
    """A handler raised while running; ``cause`` holds the underlying error."""

    kind = CommandErrorKind.EXECUTION


class DuplicateCommandError(CommandError):
    kind = CommandErrorKind.DUPLICATE


class InvalidArgumentError(CommandError, ValueError):
    kind = CommandErrorKind.INVALID_ARGUMENT


def cause_chain(error: BaseException) -> Iterator[BaseException]:
    """Yield ``error`` followed by each of its underlying causes."""

    current: BaseException | None = error
    seen: set[int] = set()
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = current.__cause__


def _describe(error: BaseException) -> str:
    message = str(error)
    name = type(error).__name__
    return f"{name}: {message}" if message else name


def describe_error(error: BaseException) -> List[str]:
    """Format an error and its causes the way the console prints them."""

    lines: List[str] = []
    for index, err in enumerate(cause_chain(error)):
        prefix = "" if index == 0 else "Caused by: "
        lines.append(prefix + _describe(err))
    return lines


def split_args(cmd_line: str) -> List[str]:
    """Split a command line into arguments.

    * ``\\`` escapes any single character, including inside quotes.
    * ``"..."`` keeps characters (whitespace included) in one argument; ``""``
      on its own produces an empty argument.
    * Escapes are literal: there are no C-style sequences such as ``\\n``.
    """

    if not cmd_line:
        raise EmptyCommandError("No command?")

    sections: List[str] = []
    current: List[str] = []
    in_quotes = False
    escaped = False
    # started: the current section will be emitted even if it stays empty
    started = False

    i = 0
    length = len(cmd_line)
    while i < length:
        char = cmd_line[i]
        if escaped:
            current.append(char)
            escaped = False
        elif in_quotes:
            if char == "\\":
                escaped = True
            elif char == '"':
                in_quotes = False
            else:
                current.append(char)
        elif char.isspace():
            while i + 1 < length and cmd_line[i + 1].isspace():
                i += 1
            if started:
                sections.append("".join(current))
                current.clear()
                started = False
        else:
            started = True
            if char == "\\":
                escaped = True
            elif char == '"':
                in_quotes = True
            else:
                current.append(char)
        i += 1

    if in_quotes:
        raise ParseError("Quotes were not closed properly")
    if escaped:
        raise ParseError("Backslash must be followed by another character")

    if started:
        sections.append("".join(current))
    return sections


class CommandParser:
    """Parses command lines and dispatches them to registered handlers."""

    def __init__(self) -> None:
        self._commands: Dict[str, CommandHandler] = {}

    def register_command(self, name: str, handler: CommandHandler) -> None:
        if name in self._commands:
            raise DuplicateCommandError(f"A command was already registered for the name {name}")
        self._commands[name] = handler

    def has_command(self, name: str) -> bool:
        return name in self._commands

    @property
    def command_names(self) -> List[str]:
        return sorted(self._commands)

    def execute(self, command: str) -> int:
        """Run a command line and return the handler's status."""

        args = split_args(command)
        if not args or args[0] not in self._commands:
            raise UnknownCommandError(f"No registered command for {command}")

        handler = self._commands[args[0]]
        try:
            status = handler(args)
        except Exception as exc:
            raise CommandExecutionError(f"Command {args[0]} failed", cause=exc)
        return 0 if status is None else int(status)
