"""Repository abstraction for permission and policy storage."""

from __future__ import annotations

from typing import Iterable, Protocol

from .models import EnforcerRecord, Permission, PolicyModel, PolicyRule


class PolicyRepository(Protocol):
    """Protocol for policy storage backends.

    List queries return records in insertion order.
    """

    async def get_permission(self, permission_id: str) -> Permission | None:
        """Retrieve a permission by its ``owner/name`` id."""

    async def get_permissions_by_model(self, owner: str, name: str) -> list[Permission]:
        """Return every permission checked against the given model."""

    async def get_permissions_by_resource(self, resource_id: str) -> list[Permission]:
        """Return every permission whose resources contain ``resource_id``."""

    async def get_model(self, model_id: str) -> PolicyModel | None:
        """Retrieve a policy model by its ``owner/name`` id."""

    async def get_rules(self, adapter: str) -> list[PolicyRule]:
        """Return all rules of a rule source."""

    async def get_enforcer(self, enforcer_id: str) -> EnforcerRecord | None:
        """Retrieve a named evaluator definition."""

    async def save_model(self, model: PolicyModel) -> None:
        """Insert or replace a policy model."""

    async def save_permission(self, permission: Permission) -> None:
        """Insert or replace a permission."""

    async def save_enforcer(self, enforcer: EnforcerRecord) -> None:
        """Insert or replace a named evaluator definition."""

    async def add_rules(self, rules: Iterable[PolicyRule]) -> None:
        """Append rules to their rule sources."""
