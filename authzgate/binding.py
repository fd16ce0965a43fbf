"""Evaluator binding: compiled-policy cache, scoped evaluators, named registry."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Collection, Dict, Iterable, Optional, Sequence

from .contracts import AccessRequest, PolicyIdentity
from .engine import PolicyEngine
from .errors import AuthzError, CompilationError, EvaluationError, NotFound, PolicyLookupError
from .persistence import PolicyRepository

logger = logging.getLogger(__name__)


class Evaluator:
    """A compiled policy, optionally restricted to a set of permission ids."""

    def __init__(
        self,
        engine: PolicyEngine,
        policy: Any,
        identity: PolicyIdentity,
        scope: Optional[frozenset[str]] = None,
    ) -> None:
        self._engine = engine
        self._policy = policy
        self.identity = identity
        self.scope = scope

    async def enforce(self, request: AccessRequest | Iterable[str]) -> bool:
        request = AccessRequest.coerce(request)
        try:
            return await asyncio.to_thread(self._engine.evaluate, self._policy, request)
        except AuthzError:
            raise
        except Exception as exc:
            raise EvaluationError(f"Evaluation failed for {self.identity}: {exc}") from exc

    async def batch_enforce(
        self, requests: Sequence[AccessRequest | Iterable[str]]
    ) -> list[bool]:
        coerced = [AccessRequest.coerce(r) for r in requests]
        try:
            results = await asyncio.to_thread(
                self._engine.evaluate_batch, self._policy, coerced
            )
        except AuthzError:
            raise
        except Exception as exc:
            raise EvaluationError(f"Evaluation failed for {self.identity}: {exc}") from exc
        if len(results) != len(coerced):
            raise EvaluationError(
                f"Engine returned {len(results)} decisions for {len(coerced)} requests"
            )
        return list(results)

    def __repr__(self) -> str:
        return f"Evaluator(identity={self.identity!s}, scope={sorted(self.scope) if self.scope is not None else None})"


@dataclass
class _CacheEntry:
    build: asyncio.Future
    created_at: float


class EvaluatorCache:
    """Compile each policy identity once and hand out scoped evaluators.

    Concurrent first use of the same identity shares a single build task; a
    caller being cancelled does not cancel the build for everyone else.
    Failed builds are forgotten so the next call retries.
    """

    def __init__(
        self,
        engine: PolicyEngine,
        repository: PolicyRepository,
        ttl_seconds: Optional[float] = None,
    ) -> None:
        self._engine = engine
        self._repository = repository
        self._ttl = ttl_seconds
        self._entries: Dict[PolicyIdentity, _CacheEntry] = {}

    @property
    def engine(self) -> PolicyEngine:
        return self._engine

    def __contains__(self, identity: PolicyIdentity) -> bool:
        entry = self._entries.get(identity)
        return entry is not None and entry.build.done() and not self._expired(entry)

    def _expired(self, entry: _CacheEntry) -> bool:
        if self._ttl is None or not entry.build.done():
            return False
        return time.monotonic() - entry.created_at > self._ttl

    async def compiled(self, identity: PolicyIdentity) -> Any:
        """Return the unscoped compiled policy for ``identity``."""
        entry = self._entries.get(identity)
        if entry is None or self._expired(entry):
            build = asyncio.ensure_future(self._compile(identity))
            entry = _CacheEntry(build=build, created_at=time.monotonic())
            self._entries[identity] = entry
            build.add_done_callback(lambda fut: self._forget_failed(identity, fut))
        return await asyncio.shield(entry.build)

    async def bind(
        self, identity: PolicyIdentity, scope: Optional[Collection[str]] = None
    ) -> Evaluator:
        """Return an evaluator for ``identity``, restricted to ``scope`` if given."""
        policy = await self.compiled(identity)
        if scope is None:
            return Evaluator(self._engine, policy, identity)
        scope_ids = frozenset(scope)
        try:
            restricted = await asyncio.to_thread(self._engine.restrict, policy, scope_ids)
        except AuthzError:
            raise
        except Exception as exc:
            raise CompilationError(f"Failed to scope {identity}: {exc}") from exc
        logger.debug("Bound %s scoped to %s", identity, sorted(scope_ids))
        return Evaluator(self._engine, restricted, identity, scope_ids)

    def invalidate(self, identity: PolicyIdentity) -> None:
        """Drop the compiled policy for ``identity``; the next bind recompiles."""
        if self._entries.pop(identity, None) is not None:
            logger.info("Invalidated compiled policy %s", identity)

    def clear(self) -> None:
        self._entries.clear()
        logger.info("Cleared evaluator cache")

    # ------------------------------------------------------------------
    def _forget_failed(self, identity: PolicyIdentity, build: asyncio.Future) -> None:
        if not build.cancelled() and build.exception() is None:
            return
        entry = self._entries.get(identity)
        if entry is not None and entry.build is build:
            del self._entries[identity]
        if not build.cancelled():
            logger.warning("Compiling %s failed: %s", identity, build.exception())

    async def _compile(self, identity: PolicyIdentity) -> Any:
        try:
            model = await self._repository.get_model(identity.model)
            rules = await self._repository.get_rules(identity.adapter)
        except AuthzError:
            raise
        except Exception as exc:
            raise CompilationError(
                f"Failed to load policy {identity}: {exc}"
            ) from exc
        if model is None:
            raise CompilationError(f"Policy model {identity.model} does not exist")

        try:
            return await asyncio.to_thread(self._engine.compile, model, rules)
        except AuthzError:
            raise
        except Exception as exc:
            raise CompilationError(f"Failed to compile {identity}: {exc}") from exc


class EvaluatorRegistry:
    """Named evaluators, registered at startup or initialized on demand.

    Unregistered names fall back to evaluator definitions stored in the
    repository.
    """

    def __init__(self, cache: EvaluatorCache, repository: PolicyRepository) -> None:
        self._cache = cache
        self._repository = repository
        self._identities: Dict[str, PolicyIdentity] = {}

    async def register(self, evaluator_id: str, identity: PolicyIdentity) -> Evaluator:
        """Register ``evaluator_id`` and compile its policy eagerly."""
        evaluator = await self._cache.bind(identity)
        self._identities[evaluator_id] = identity
        logger.info("Registered evaluator %s for %s", evaluator_id, identity)
        return evaluator

    def unregister(self, evaluator_id: str) -> None:
        identity = self._identities.pop(evaluator_id, None)
        if identity is not None:
            self._cache.invalidate(identity)

    async def lookup(self, evaluator_id: str) -> Evaluator:
        identity = self._identities.get(evaluator_id)
        if identity is None:
            try:
                record = await self._repository.get_enforcer(evaluator_id)
            except AuthzError:
                raise
            except Exception as exc:
                raise PolicyLookupError(
                    f"Evaluator lookup failed for {evaluator_id}: {exc}"
                ) from exc
            if record is None:
                raise NotFound(f"Evaluator {evaluator_id} does not exist")
            identity = record.identity
            self._identities[evaluator_id] = identity
            logger.info("Initialized evaluator %s on demand", evaluator_id)
        return await self._cache.bind(identity)
