"""Tests for permission resolution."""

from unittest.mock import AsyncMock

import pytest

from authzgate.contracts import EvaluatorRef, ModelRef, PermissionRef, ResourceRef
from authzgate.errors import PolicyLookupError
from authzgate.resolver import PermissionResolver


@pytest.mark.asyncio
async def test_resolve_explicit_permission(repository):
    resolver = PermissionResolver(repository)
    permissions = await resolver.resolve(PermissionRef("built-in/p1"))
    assert [p.id for p in permissions] == ["built-in/p1"]


@pytest.mark.asyncio
async def test_resolve_missing_permission_is_empty(repository):
    resolver = PermissionResolver(repository)
    assert await resolver.resolve(PermissionRef("built-in/nope")) == []


@pytest.mark.asyncio
async def test_resolve_by_model(repository):
    resolver = PermissionResolver(repository)
    permissions = await resolver.resolve(ModelRef("built-in", "m1"))
    assert [p.id for p in permissions] == ["built-in/p1", "built-in/p2", "built-in/p3"]


@pytest.mark.asyncio
async def test_resolve_by_resource(repository):
    resolver = PermissionResolver(repository)
    permissions = await resolver.resolve(ResourceRef("r2"))
    assert [p.id for p in permissions] == ["built-in/p1", "built-in/p3"]
    assert await resolver.resolve(ResourceRef("r1")) == []


@pytest.mark.asyncio
async def test_evaluator_selector_is_rejected(repository):
    resolver = PermissionResolver(repository)
    with pytest.raises(TypeError):
        await resolver.resolve(EvaluatorRef("built-in/e1"))


@pytest.mark.asyncio
async def test_store_failure_becomes_lookup_error():
    repo = AsyncMock()
    repo.get_permissions_by_model.side_effect = ConnectionError("db down")
    resolver = PermissionResolver(repo)
    with pytest.raises(PolicyLookupError) as exc_info:
        await resolver.resolve(ModelRef("built-in", "m1"))
    assert isinstance(exc_info.value.__cause__, ConnectionError)
