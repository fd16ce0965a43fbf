"""Casbin-backed evaluation engine."""

from __future__ import annotations

import copy
import logging
import threading
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Collection, Sequence, Union

import casbin
from casbin.model import Model

from ..contracts import AccessRequest
from ..errors import CompilationError, EvaluationError
from ..persistence.models import PolicyModel, PolicyRule
from .base import PolicyEngine

logger = logging.getLogger(__name__)

DEFAULT_MAX_SCOPES = 128


@dataclass
class CasbinPolicy:
    """A parsed model plus the full rule list of its rule source.

    ``model`` is never handed to an enforcer; every enforcer gets its own copy.
    """

    model_id: str
    model: Model
    rules: tuple[PolicyRule, ...]
    enforcer: casbin.Enforcer
    _restricted: OrderedDict[frozenset[str], casbin.Enforcer] = field(
        default_factory=OrderedDict
    )
    _lock: threading.Lock = field(default_factory=threading.Lock)

    def rules_in_scope(self, scope: frozenset[str]) -> list[PolicyRule]:
        # grouping rules (role links) are shared by every permission
        return [
            rule
            for rule in self.rules
            if rule.ptype.startswith("g") or rule.permission_id in scope
        ]


def _parse_model(model_text: str) -> Model:
    model = Model()
    model.load_model_from_text(model_text)
    return model


def _build_enforcer(model: Model, rules: Sequence[PolicyRule]) -> casbin.Enforcer:
    enforcer = casbin.Enforcer(copy.deepcopy(model))
    for rule in rules:
        if rule.ptype.startswith("g"):
            enforcer.add_named_grouping_policy(rule.ptype, *rule.values)
        else:
            enforcer.add_named_policy(rule.ptype, *rule.values)
    return enforcer


class CasbinEngine(PolicyEngine[CasbinPolicy]):
    """Evaluate requests with in-memory Casbin enforcers.

    Scoped enforcers are kept per compiled policy, least recently used first
    out once ``max_scopes`` is reached.
    """

    def __init__(self, max_scopes: int = DEFAULT_MAX_SCOPES) -> None:
        if max_scopes < 1:
            raise ValueError("max_scopes must be at least 1")
        self.max_scopes = max_scopes

    def compile(self, model: PolicyModel, rules: Sequence[PolicyRule]) -> CasbinPolicy:
        try:
            parsed = _parse_model(model.text)
            enforcer = _build_enforcer(parsed, rules)
        except Exception as exc:
            raise CompilationError(f"Failed to compile model {model.id}: {exc}") from exc
        logger.info("Compiled model %s with %d rules", model.id, len(rules))
        return CasbinPolicy(
            model_id=model.id,
            model=parsed,
            rules=tuple(rules),
            enforcer=enforcer,
        )

    def restrict(self, compiled: CasbinPolicy, scope: Collection[str]) -> casbin.Enforcer:
        key = frozenset(scope)
        with compiled._lock:
            enforcer = compiled._restricted.get(key)
            if enforcer is not None:
                compiled._restricted.move_to_end(key)
                return enforcer
            try:
                enforcer = _build_enforcer(compiled.model, compiled.rules_in_scope(key))
            except Exception as exc:
                raise CompilationError(
                    f"Failed to restrict model {compiled.model_id}: {exc}"
                ) from exc
            compiled._restricted[key] = enforcer
            while len(compiled._restricted) > self.max_scopes:
                evicted, _ = compiled._restricted.popitem(last=False)
                logger.debug(
                    "Evicted scope %s of model %s", sorted(evicted), compiled.model_id
                )
        return enforcer

    def evaluate(
        self, compiled: Union[CasbinPolicy, casbin.Enforcer], request: AccessRequest
    ) -> bool:
        enforcer = self._enforcer(compiled)
        try:
            return bool(enforcer.enforce(*request.values))
        except Exception as exc:
            raise EvaluationError(f"Casbin enforce failed: {exc}") from exc

    def evaluate_batch(
        self,
        compiled: Union[CasbinPolicy, casbin.Enforcer],
        requests: Sequence[AccessRequest],
    ) -> list[bool]:
        enforcer = self._enforcer(compiled)
        try:
            results = enforcer.batch_enforce([list(r.values) for r in requests])
        except Exception as exc:
            raise EvaluationError(f"Casbin batch enforce failed: {exc}") from exc
        return [bool(result) for result in results]

    @staticmethod
    def _enforcer(compiled: Union[CasbinPolicy, casbin.Enforcer]) -> casbin.Enforcer:
        if isinstance(compiled, CasbinPolicy):
            return compiled.enforcer
        return compiled
