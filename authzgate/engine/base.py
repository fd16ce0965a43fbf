"""Evaluation engine interface consumed by the evaluator binding layer."""

from __future__ import annotations

import abc
from typing import Any, Collection, Generic, Sequence, TypeVar

from ..contracts import AccessRequest
from ..persistence.models import PolicyModel, PolicyRule

CompiledT = TypeVar("CompiledT")


class PolicyEngine(Generic[CompiledT], metaclass=abc.ABCMeta):
    """Abstract policy evaluation engine.

    ``compile`` is the expensive step and is memoized by the caller;
    ``restrict`` derives a view limited to rules tagged with one of the given
    permission ids and must not recompile the model.
    """

    @abc.abstractmethod
    def compile(self, model: PolicyModel, rules: Sequence[PolicyRule]) -> CompiledT:
        """Compile a policy model together with its full rule set."""
        raise NotImplementedError

    @abc.abstractmethod
    def restrict(self, compiled: CompiledT, scope: Collection[str]) -> Any:
        """Return a view of ``compiled`` limited to the permission ids in ``scope``."""
        raise NotImplementedError

    @abc.abstractmethod
    def evaluate(self, compiled: Any, request: AccessRequest) -> bool:
        """Decide a single request."""
        raise NotImplementedError

    def evaluate_batch(
        self, compiled: Any, requests: Sequence[AccessRequest]
    ) -> list[bool]:
        """Decide an ordered sequence of requests (defaults to one at a time)."""
        return [self.evaluate(compiled, request) for request in requests]
