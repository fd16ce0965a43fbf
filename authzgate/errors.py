"""Error kinds raised by the authorization decision point."""

from __future__ import annotations


class AuthzError(Exception):
    """Base class for all authzgate errors."""


class InvalidRequest(AuthzError):
    """The caller supplied nothing decidable."""


class EmptyInput(InvalidRequest):
    """Request payload is absent or cannot be parsed."""


class MissingSelector(InvalidRequest):
    """No evaluator, permission, model or resource selector was supplied."""


class NotFound(AuthzError):
    """A named evaluator does not exist."""


class DecisionFailure(AuthzError):
    """The system could not reach a decision."""


class PolicyLookupError(DecisionFailure, LookupError):
    """The store is unreachable or a composite identifier is malformed."""


class CompilationError(DecisionFailure):
    """A policy model or its rule source could not be loaded or parsed."""


class EvaluationError(DecisionFailure):
    """The evaluation engine failed while deciding a request."""


__all__ = [
    "AuthzError",
    "InvalidRequest",
    "EmptyInput",
    "MissingSelector",
    "NotFound",
    "DecisionFailure",
    "PolicyLookupError",
    "CompilationError",
    "EvaluationError",
]
