# stateguard/runtime/registry.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details
"""
Factories that turn chained string identifiers into rule and command objects.

Transitions and states reference their guards and actions by key (``"is_paid,
has_stock"``). At evaluation time the key is resolved against a registry and the
factory is called with the domain entity produced by the context.
"""

import logging
from typing import Any, Dict, List, Optional, Type

from stateguard.core.commands import Composite, ExceptionCommand, NullCommand
from stateguard.core.errors import CommandConstructionError, FSMError, RuleConstructionError
from stateguard.core.rules import AndRule, ExceptionRule, FalseRule, Rule, TrueRule
from stateguard.interfaces.protocols import CommandProtocol, EventAware
from stateguard.interfaces.types import ChainedIdentifiers, EventName, Factory

logger = logging.getLogger(__name__)


def split_identifiers(identifiers: ChainedIdentifiers) -> List[str]:
    """
    Normalize a chained identifier specification into a list of keys.

    :param identifiers: A comma separated string or a sequence of keys.
    :return: The non-empty, stripped keys in declaration order.
    """
    if identifiers is None:
        return []
    if isinstance(identifiers, str):
        identifiers = identifiers.split(",")
    return [key.strip() for key in identifiers if key and key.strip()]


class Registry:
    """
    Maps string keys to factories. A factory is any callable taking the entity,
    a class being the common case.
    """

    _construction_error: Type[FSMError] = FSMError

    def __init__(self) -> None:
        self._factories: Dict[str, Factory] = {}

    def register(self, key: str, factory: Optional[Factory] = None) -> Any:
        """
        Register ``factory`` under ``key``. Without a factory, returns a decorator:

            @rules.register("is_paid")
            class IsPaid(Rule): ...
        """
        if factory is None:

            def decorator(f: Factory) -> Factory:
                self._factories[key] = f
                return f

            return decorator
        self._factories[key] = factory
        return factory

    def unregister(self, key: str) -> None:
        self._factories.pop(key, None)

    def keys(self) -> List[str]:
        return list(self._factories)

    def __contains__(self, key: object) -> bool:
        return key in self._factories

    def create(self, key: str, entity: Any) -> Any:
        """
        Call the factory registered under ``key``.

        :raises RuleConstructionError/CommandConstructionError: If the key is unknown
            or the factory fails.
        """
        try:
            factory = self._factories[key]
        except KeyError:
            raise self._construction_error(f"no factory registered for '{key}'") from None
        try:
            return factory(entity)
        except FSMError:
            raise
        except Exception as e:
            raise self._construction_error(f"failed to build '{key}': {e}") from e


class RuleRegistry(Registry):
    _construction_error = RuleConstructionError

    def build(self, identifiers: ChainedIdentifiers, entity: Any) -> Rule:
        """
        Build the AND-composition of every rule in the chain.

        :return: ``TrueRule`` for an empty chain, otherwise ``((TrueRule and A) and B)``.
        """
        keys = split_identifiers(identifiers)
        rule: Rule = TrueRule()
        for key in keys:
            built = self.create(key, entity)
            if not isinstance(built, Rule):
                raise RuleConstructionError(f"'{key}' did not build a Rule: {type(built).__name__}")
            rule = AndRule(rule, built)
        logger.debug("Built rule %s from %s", rule, keys)
        return rule


class CommandRegistry(Registry):
    _construction_error = CommandConstructionError

    def build(
        self, identifiers: ChainedIdentifiers, entity: Any, event: Optional[EventName] = None
    ) -> CommandProtocol:
        """
        Build a composite of every command in the chain.

        :param event: Passed to commands implementing ``set_event``.
        :return: ``NullCommand`` for an empty chain, otherwise a ``Composite``.
        """
        keys = split_identifiers(identifiers)
        if not keys:
            return NullCommand()
        composite = Composite()
        for key in keys:
            built = self.create(key, entity)
            if not isinstance(built, CommandProtocol):
                raise CommandConstructionError(f"'{key}' did not build a command: {type(built).__name__}")
            if isinstance(built, EventAware):
                built.set_event(event)
            composite.add(built)
        logger.debug("Built command %s from %s", composite, keys)
        return composite


def default_rules() -> RuleRegistry:
    rules = RuleRegistry()
    rules.register("true", TrueRule)
    rules.register("false", FalseRule)
    rules.register("exception", ExceptionRule)
    return rules


def default_commands() -> CommandRegistry:
    commands = CommandRegistry()
    commands.register("null", NullCommand)
    commands.register("exception", ExceptionCommand)
    return commands
