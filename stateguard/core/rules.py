# stateguard/core/rules.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details
"""
Boolean business rules used as transition guards.

A rule is a predicate with a uniform evaluation contract: ``applies()`` returns a
strict ``bool`` or raises ``RuleEvaluationError``. Rules compose into a closed
algebra (and, or, xor, not) so guards can be nested arbitrarily:

    guard = IsPaid(order) & ~IsCancelled(order)

The short-circuit behaviour of the combinators is part of the contract. ``and``
and ``or`` stop after the left operand when it decides the outcome, ``xor``
always evaluates both operands.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Tuple

from stateguard.core.commands import NullCommand
from stateguard.core.errors import RuleEvaluationError
from stateguard.interfaces.protocols import CommandProtocol


@dataclass(frozen=True)
class RuleResult:
    """A diagnostic label recorded by a rule during evaluation."""

    rule: "Rule"
    result: Any


class Rule(ABC):
    """
    Base class for boolean predicates.

    Subclasses implement ``_applies`` and receive whatever data they need through
    their constructor (usually the entity resolved by the context).

    Caching is opt-in. When enabled, the first evaluated result is returned on every
    later call until caching is disabled or ``clear_cache`` is called. Do not enable
    it for non-deterministic predicates, and do not share a caching rule between
    concurrent evaluations with different inputs.
    """

    _cache_enabled: bool = False
    _cache: Optional[bool] = None
    _results: Tuple[RuleResult, ...] = ()

    def applies(self) -> bool:
        """
        Evaluate the rule.

        :return: True if the rule applies, otherwise False.
        :raises RuleEvaluationError: If the predicate does not return a bool or raises.
        """
        if self._cache_enabled and self._cache is not None:
            return self._cache

        self._results = ()
        self._cache = None
        try:
            result = self._applies()
        except RuleEvaluationError as e:
            self.handle_exception(e)
            raise
        except Exception as e:
            error = RuleEvaluationError(str(e), RuleEvaluationError.GENERAL)
            self.handle_exception(error)
            raise error from e

        if not isinstance(result, bool):
            error = RuleEvaluationError(
                f"A rule must return a boolean, {type(result).__name__} returned by {self}",
                RuleEvaluationError.NON_BOOLEAN,
            )
            self.handle_exception(error)
            raise error

        if self._cache_enabled:
            self._cache = result
        return result

    @abstractmethod
    def _applies(self) -> bool: ...

    def handle_exception(self, error: RuleEvaluationError) -> None:
        """Hook for subclasses that want to log or record a failure before it propagates."""

    @property
    def cache_enabled(self) -> bool:
        return self._cache_enabled

    @cache_enabled.setter
    def cache_enabled(self, enabled: bool) -> None:
        self._cache_enabled = bool(enabled)
        self._cache = None

    def clear_cache(self) -> None:
        self._cache = None

    @property
    def results(self) -> List[RuleResult]:
        """Diagnostic results recorded during the last non-cached evaluation."""
        return list(self._results)

    def _add_result(self, result: Any) -> None:
        self._results = self._results + (RuleResult(self, result),)

    def contains_result(self, expected: Any) -> bool:
        return any(r.result == expected for r in self.results)

    def has_result(self) -> bool:
        return len(self.results) != 0

    def and_(self, other: "Rule") -> "AndRule":
        return AndRule(self, other)

    def or_(self, other: "Rule") -> "OrRule":
        return OrRule(self, other)

    def xor(self, other: "Rule") -> "XorRule":
        return XorRule(self, other)

    def not_(self) -> "NotRule":
        return NotRule(self)

    def __and__(self, other: "Rule") -> "AndRule":
        return self.and_(other)

    def __or__(self, other: "Rule") -> "OrRule":
        return self.or_(other)

    def __xor__(self, other: "Rule") -> "XorRule":
        return self.xor(other)

    def __invert__(self) -> "NotRule":
        return self.not_()

    def __str__(self) -> str:
        return type(self).__name__


class _BinaryRule(Rule):
    """Shared plumbing for rules wrapping exactly two operands."""

    operator = ""

    def __init__(self, left: Rule, right: Rule) -> None:
        self.left = left
        self.right = right

    @property
    def results(self) -> List[RuleResult]:
        # right-hand results first
        return self.right.results + self.left.results

    def __str__(self) -> str:
        return f"({self.left} {self.operator} {self.right})"


class AndRule(_BinaryRule):
    operator = "and"

    def _applies(self) -> bool:
        return self.left.applies() and self.right.applies()


class OrRule(_BinaryRule):
    operator = "or"

    def _applies(self) -> bool:
        return self.left.applies() or self.right.applies()


class XorRule(_BinaryRule):
    """
    Exclusive or. Unlike ``AndRule`` and ``OrRule`` both operands are evaluated on
    every call, so side effects inside either rule always happen.
    """

    operator = "xor"

    def _applies(self) -> bool:
        left = self.left.applies()
        right = self.right.applies()
        return left != right


class NotRule(Rule):
    def __init__(self, rule: Rule) -> None:
        self.rule = rule

    def _applies(self) -> bool:
        return not self.rule.applies()

    @property
    def results(self) -> List[RuleResult]:
        return self.rule.results

    def __str__(self) -> str:
        return f"not {self.rule}"


class TrueRule(Rule):
    """Always applies."""

    def __init__(self, *args: Any) -> None:
        pass

    def _applies(self) -> bool:
        return True


class FalseRule(Rule):
    """Never applies."""

    def __init__(self, *args: Any) -> None:
        pass

    def _applies(self) -> bool:
        return False


class BooleanRule(Rule):
    def __init__(self, value: bool) -> None:
        self._value = bool(value)

    def _applies(self) -> bool:
        return self._value


class CallableRule(Rule):
    """
    Adapts a plain callable to the rule interface. The callable's return value is
    coerced with ``bool()``.
    """

    def __init__(self, condition_fn: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
        self._condition_fn = condition_fn
        self._args = args
        self._kwargs = kwargs

    def _applies(self) -> bool:
        return bool(self._condition_fn(*self._args, **self._kwargs))


class ExceptionRule(Rule):
    """A rule that always fails. Mostly useful in tests."""

    def __init__(self, *args: Any) -> None:
        pass

    def _applies(self) -> bool:
        raise RuleEvaluationError("this rule always throws an exception", RuleEvaluationError.GENERAL)


class ExceptionSuppressor(Rule):
    """
    Decorates a rule so that an evaluation failure yields a fixed result instead
    of propagating.
    """

    def __init__(self, rule: Rule, suppressed_result: bool = False) -> None:
        self.rule = rule
        self.suppressed_result = bool(suppressed_result)

    def _applies(self) -> bool:
        try:
            return self.rule.applies()
        except RuleEvaluationError:
            return self.suppressed_result


class Enforcer:
    """
    Executes one command when a rule applies and another one when it does not.
    """

    def __init__(
        self,
        rule: Rule,
        on_true: CommandProtocol,
        on_false: Optional[CommandProtocol] = None,
    ) -> None:
        self.rule = rule
        self.on_true = on_true
        self.on_false = on_false

    def enforce(self) -> bool:
        return self.obey(self.rule, self.on_true, self.on_false)

    @staticmethod
    def obey(
        rule: Rule,
        on_true: CommandProtocol,
        on_false: Optional[CommandProtocol] = None,
    ) -> bool:
        """
        :return: True if the rule applied and ``on_true`` was executed.
        """
        if rule.applies():
            on_true.execute()
            return True
        (on_false or NullCommand()).execute()
        return False

    def __str__(self) -> str:
        return f"Enforcer('{self.rule}', '{self.on_true}', '{self.on_false or NullCommand()}')"
