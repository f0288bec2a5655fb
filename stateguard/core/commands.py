# stateguard/core/commands.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from abc import ABC, abstractmethod
from typing import Any, Callable, Iterable, List

from stateguard.core.errors import CommandExecutionError
from stateguard.interfaces.protocols import CommandProtocol


class Command(ABC):
    """
    Base class for side-effecting actions executed by transitions and states.

    Subclasses implement ``_execute``. Domain data needed by a command is injected
    through its constructor, usually the entity resolved by the context.
    """

    def execute(self) -> None:
        """
        Run the command.

        :raises CommandExecutionError: If the command fails. Foreign exceptions are
            wrapped and preserved as the cause.
        """
        try:
            self._execute()
        except CommandExecutionError as e:
            self.handle_exception(e)
            raise
        except Exception as e:
            error = CommandExecutionError(str(e))
            self.handle_exception(error)
            raise error from e

    def handle_exception(self, error: CommandExecutionError) -> None:
        """Hook for subclasses that want to log or record a failure before it propagates."""

    @abstractmethod
    def _execute(self) -> None: ...

    def __str__(self) -> str:
        return type(self).__name__


class Composite(Command):
    """
    An ordered sequence of commands executed as one logical action.

    Members run sequentially. A failure part way through does not roll back the
    members that already executed.
    """

    def __init__(self, commands: Iterable[CommandProtocol] = ()) -> None:
        self._commands: List[CommandProtocol] = list(commands)

    def _execute(self) -> None:
        for command in self._commands:
            command.execute()

    def add(self, command: CommandProtocol) -> None:
        self._commands.append(command)

    def remove(self, command: CommandProtocol) -> bool:
        """
        Remove every occurrence of ``command``.

        :return: True if at least one occurrence was removed.
        """
        remaining = [c for c in self._commands if c is not command]
        removed = len(remaining) != len(self._commands)
        self._commands = remaining
        return removed

    @property
    def commands(self) -> List[CommandProtocol]:
        return list(self._commands)

    def __contains__(self, command: object) -> bool:
        return any(c is command for c in self._commands)

    def __len__(self) -> int:
        return len(self._commands)

    def __str__(self) -> str:
        if not self._commands:
            return type(self).__name__
        children = ", ".join(str(c) for c in self._commands)
        return f"{type(self).__name__} consisting of: [{children}]"


class NullCommand(Command):
    """A command without side effects."""

    def __init__(self, *args: Any) -> None:
        pass

    def _execute(self) -> None:
        pass


class CallableCommand(Command):
    """
    Adapts a plain callable to the command interface.
    """

    def __init__(self, action_fn: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
        self._action_fn = action_fn
        self._args = args
        self._kwargs = kwargs

    def _execute(self) -> None:
        self._action_fn(*self._args, **self._kwargs)


class ExceptionCommand(Command):
    """A command that always fails. Mostly useful in tests."""

    def __init__(self, *args: Any) -> None:
        pass

    def _execute(self) -> None:
        raise CommandExecutionError("this command always throws an exception")
