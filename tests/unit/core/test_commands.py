# tests/unit/core/test_commands.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from unittest.mock import MagicMock

import pytest

from stateguard.core.commands import CallableCommand, Command, Composite, ExceptionCommand, NullCommand
from stateguard.core.errors import CommandExecutionError
from stateguard.interfaces.protocols import CommandProtocol


class RecordingCommand(Command):
    def __init__(self, name, log):
        self.name = name
        self.log = log

    def _execute(self):
        self.log.append(self.name)

    def __str__(self):
        return self.name


def test_null_command():
    NullCommand().execute()
    NullCommand("ignored", "args").execute()
    assert str(NullCommand()) == "NullCommand"


def test_exception_command():
    with pytest.raises(CommandExecutionError):
        ExceptionCommand().execute()


def test_callable_command():
    action = MagicMock()
    CallableCommand(action, 1, key="value").execute()
    action.assert_called_once_with(1, key="value")


def test_foreign_exception_is_wrapped():
    original = RuntimeError("boom")

    def fail():
        raise original

    with pytest.raises(CommandExecutionError) as exc_info:
        CallableCommand(fail).execute()
    assert exc_info.value.__cause__ is original


def test_handle_exception_hook():
    handled = []

    class Failing(Command):
        def _execute(self):
            raise ValueError("bad")

        def handle_exception(self, error):
            handled.append(error)

    with pytest.raises(CommandExecutionError) as exc_info:
        Failing().execute()
    assert handled == [exc_info.value]


def test_composite_executes_in_order():
    log = []
    composite = Composite([RecordingCommand("a", log), RecordingCommand("b", log)])
    composite.add(RecordingCommand("c", log))
    composite.execute()
    assert log == ["a", "b", "c"]
    assert len(composite) == 3


def test_composite_does_not_roll_back():
    log = []
    composite = Composite([RecordingCommand("a", log), ExceptionCommand(), RecordingCommand("c", log)])
    with pytest.raises(CommandExecutionError):
        composite.execute()
    assert log == ["a"]


def test_composite_remove_and_contains():
    log = []
    a = RecordingCommand("a", log)
    b = RecordingCommand("b", log)
    composite = Composite([a, b, a])
    assert a in composite
    assert composite.remove(a) is True
    assert a not in composite
    assert composite.remove(a) is False
    assert composite.commands == [b]


def test_composite_str():
    log = []
    composite = Composite([RecordingCommand("A", log), RecordingCommand("B", log)])
    assert str(composite) == "Composite consisting of: [A, B]"
    assert str(Composite()) == "Composite"


def test_command_protocol():
    assert isinstance(NullCommand(), CommandProtocol)
    assert isinstance(RecordingCommand("a", []), CommandProtocol)
    assert not isinstance(object(), CommandProtocol)
