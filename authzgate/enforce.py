"""Enforcement orchestrator for single and batched access requests."""

from __future__ import annotations

import logging
from typing import Iterable, Optional, Sequence

from .binding import EvaluatorCache, EvaluatorRegistry, Evaluator
from .config import AuthzConfig, load_config
from .contracts import (
    AccessRequest,
    EvaluatorRef,
    PermissionRef,
    Selector,
    build_selector,
)
from .engine import CasbinEngine, PolicyEngine
from .grouping import group_permissions
from .persistence import PolicyRepository, get_repository
from .resolver import PermissionResolver

logger = logging.getLogger(__name__)


class PolicyEnforcer:
    """Decide access requests against the permissions a selector names.

    The selector picks one of three paths:

    * :class:`EvaluatorRef` - ask a named evaluator directly;
    * :class:`PermissionRef` - evaluate against that permission's rules only;
      an unknown permission denies instead of failing;
    * :class:`ModelRef` / :class:`ResourceRef` - resolve permissions, group
      them by (model, adapter) and produce one decision per group, in group
      order.

    Any failure aborts the whole call; partial results are never returned.
    """

    def __init__(
        self,
        repository: PolicyRepository,
        cache: EvaluatorCache,
        registry: Optional[EvaluatorRegistry] = None,
    ) -> None:
        self._resolver = PermissionResolver(repository)
        self._cache = cache
        self._registry = registry or EvaluatorRegistry(cache, repository)

    @property
    def cache(self) -> EvaluatorCache:
        return self._cache

    @property
    def registry(self) -> EvaluatorRegistry:
        return self._registry

    async def enforce(
        self, selector: Selector, request: AccessRequest | Iterable[str]
    ) -> list[bool]:
        """Return one decision per selected evaluator for a single request."""
        request = AccessRequest.coerce(request)
        evaluators = await self._evaluators(selector)
        if evaluators is None:
            return [False]
        return [await evaluator.enforce(request) for evaluator in evaluators]

    async def batch_enforce(
        self, selector: Selector, requests: Sequence[AccessRequest | Iterable[str]]
    ) -> list[list[bool]]:
        """Return one row of decisions per selected evaluator.

        Each row is aligned with ``requests``; every evaluator receives the
        whole batch in a single engine call.
        """
        coerced = [AccessRequest.coerce(r) for r in requests]
        evaluators = await self._evaluators(selector)
        if evaluators is None:
            return [[False] * len(coerced)]
        return [await evaluator.batch_enforce(coerced) for evaluator in evaluators]

    async def enforce_by(
        self,
        request: AccessRequest | Iterable[str],
        *,
        enforcer_id: Optional[str] = None,
        permission_id: Optional[str] = None,
        model_id: Optional[str] = None,
        resource_id: Optional[str] = None,
    ) -> list[bool]:
        selector = build_selector(enforcer_id, permission_id, model_id, resource_id)
        return await self.enforce(selector, request)

    async def batch_enforce_by(
        self,
        requests: Sequence[AccessRequest | Iterable[str]],
        *,
        enforcer_id: Optional[str] = None,
        permission_id: Optional[str] = None,
        model_id: Optional[str] = None,
        resource_id: Optional[str] = None,
    ) -> list[list[bool]]:
        selector = build_selector(enforcer_id, permission_id, model_id, resource_id)
        return await self.batch_enforce(selector, requests)

    # ------------------------------------------------------------------
    async def _evaluators(self, selector: Selector) -> list[Evaluator] | None:
        """Bind the evaluators for ``selector``.

        Returns ``None`` when an explicitly named permission does not exist.
        """

        if isinstance(selector, EvaluatorRef):
            return [await self._registry.lookup(selector.evaluator_id)]

        permissions = await self._resolver.resolve(selector)

        if isinstance(selector, PermissionRef):
            if not permissions:
                logger.debug("Permission %s not found, denying", selector.permission_id)
                return None
            permission = permissions[0]
            return [await self._cache.bind(permission.identity, scope=[permission.id])]

        groups = group_permissions(permissions)
        logger.debug(
            "Selector %r produced %d group(s) from %d permission(s)",
            selector,
            len(groups),
            len(permissions),
        )
        return [
            await self._cache.bind(group.identity, scope=group.permission_ids)
            for group in groups
        ]


def build_enforcer(
    config: Optional[AuthzConfig] = None,
    repository: Optional[PolicyRepository] = None,
    engine: Optional[PolicyEngine] = None,
) -> PolicyEnforcer:
    """Wire repository, engine, cache and registry from configuration."""

    if repository is None:
        repository = get_repository(config=config) if config else get_repository()
    config = config or load_config()
    cache = EvaluatorCache(
        engine or CasbinEngine(max_scopes=config.cache.max_scopes),
        repository,
        ttl_seconds=config.cache.ttl_seconds,
    )
    return PolicyEnforcer(repository, cache, EvaluatorRegistry(cache, repository))
