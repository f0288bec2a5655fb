# stateguard/loader/loader.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Dict, Iterable, List

from stateguard.core.errors import LoaderError
from stateguard.core.transitions import Transition
from stateguard.interfaces.types import TransitionName

if TYPE_CHECKING:
    from stateguard.core.state_machine import StateMachine

logger = logging.getLogger(__name__)


class LoaderArray:
    """
    Loads a fixed collection of transitions into a machine.

    Transitions are keyed by name; a later transition replaces an earlier one with
    the same name. Regex transitions are expanded again on every ``load`` so that
    states added to the machine in between take part.
    """

    def __init__(self, transitions: Iterable[Transition] = ()) -> None:
        self._transitions: Dict[TransitionName, Transition] = {}
        for transition in transitions:
            self.add(transition)

    def add(self, transition: Transition) -> None:
        """
        :raises LoaderError: If ``transition`` is not a Transition.
        """
        if not isinstance(transition, Transition):
            raise LoaderError(f"expected a Transition, got {type(transition).__name__}")
        self._transitions[transition.name] = transition

    @property
    def transitions(self) -> List[Transition]:
        return list(self._transitions.values())

    def load(self, machine: "StateMachine") -> int:
        """
        :return: Number of transitions newly added to the machine.
        """
        count = sum(machine.add_transition(t) for t in self._transitions.values())
        logger.debug("Loaded %d transition(s) into %s", count, machine)
        return count

    def __len__(self) -> int:
        return len(self._transitions)

    def __str__(self) -> str:
        return f"LoaderArray({len(self._transitions)} transitions)"
