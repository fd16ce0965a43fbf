"""Shared fixtures: a seeded in-memory repository and a recording engine."""

from __future__ import annotations

import threading
import time
from typing import Collection, Sequence

import pytest

from authzgate.binding import EvaluatorCache, EvaluatorRegistry
from authzgate.contracts import AccessRequest
from authzgate.enforce import PolicyEnforcer
from authzgate.engine import PolicyEngine
from authzgate.persistence import (
    EnforcerRecord,
    InMemoryPolicyRepository,
    Permission,
    PolicyDocument,
    PolicyModel,
    PolicyRule,
)


class RecordingEngine(PolicyEngine[dict]):
    """Grants a request when a visible ``p`` rule equals it exactly."""

    def __init__(self, compile_delay: float = 0.0) -> None:
        self.compile_delay = compile_delay
        self.compiled_models: list[str] = []
        self.batch_calls = 0
        self._lock = threading.Lock()

    def compile(self, model: PolicyModel, rules: Sequence[PolicyRule]) -> dict:
        with self._lock:
            self.compiled_models.append(model.id)
        if self.compile_delay:
            time.sleep(self.compile_delay)
        return {"model": model.id, "rules": tuple(rules), "scope": None}

    def restrict(self, compiled: dict, scope: Collection[str]) -> dict:
        visible = tuple(r for r in compiled["rules"] if r.permission_id in scope)
        return {"model": compiled["model"], "rules": visible, "scope": frozenset(scope)}

    def evaluate(self, compiled: dict, request: AccessRequest) -> bool:
        return any(
            rule.ptype == "p" and rule.values == request.values
            for rule in compiled["rules"]
        )

    def evaluate_batch(self, compiled: dict, requests: Sequence[AccessRequest]) -> list[bool]:
        self.batch_calls += 1
        return [self.evaluate(compiled, r) for r in requests]


def _rule(adapter: str, permission: str, *values: str) -> PolicyRule:
    return PolicyRule(adapter=adapter, ptype="p", values=values, permission_id=permission)


def seed_document() -> PolicyDocument:
    """p1 and p2 share (m1, a1); p3 uses (m1, a2); e1 names (m1, a1)."""
    return PolicyDocument(
        models=[PolicyModel(owner="built-in", name="m1", text="model m1")],
        permissions=[
            Permission(owner="built-in", name="p1", model="built-in/m1", adapter="built-in/a1", resources=["r2"]),
            Permission(owner="built-in", name="p2", model="built-in/m1", adapter="built-in/a1"),
            Permission(owner="built-in", name="p3", model="built-in/m1", adapter="built-in/a2", resources=["r2"]),
        ],
        rules=[
            _rule("built-in/a1", "built-in/p1", "alice", "data1", "read"),
            _rule("built-in/a1", "built-in/p2", "bob", "data2", "write"),
            _rule("built-in/a2", "built-in/p3", "carol", "data3", "read"),
        ],
        enforcers=[
            EnforcerRecord(owner="built-in", name="e1", model="built-in/m1", adapter="built-in/a1")
        ],
    )


@pytest.fixture
def document() -> PolicyDocument:
    return seed_document()


@pytest.fixture
def repository(document) -> InMemoryPolicyRepository:
    return InMemoryPolicyRepository(document)


@pytest.fixture
def engine() -> RecordingEngine:
    return RecordingEngine()


@pytest.fixture
def cache(engine, repository) -> EvaluatorCache:
    return EvaluatorCache(engine, repository)


@pytest.fixture
def enforcer(cache, repository) -> PolicyEnforcer:
    return PolicyEnforcer(repository, cache, EvaluatorRegistry(cache, repository))


@pytest.fixture
def slow_engine() -> RecordingEngine:
    return RecordingEngine(compile_delay=0.05)
