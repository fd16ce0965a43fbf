"""In-memory implementation of the policy repository."""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from .loader import PolicyDocument
from .models import EnforcerRecord, Permission, PolicyModel, PolicyRule
from .repository import PolicyRepository


class InMemoryPolicyRepository(PolicyRepository):
    """Store policy records in local memory.

    Useful for tests or when no database is configured. Data is not
    persisted across process restarts.
    """

    def __init__(self, document: Optional[PolicyDocument] = None) -> None:
        self._models: Dict[str, PolicyModel] = {}
        self._permissions: Dict[str, Permission] = {}
        self._enforcers: Dict[str, EnforcerRecord] = {}
        self._rules: Dict[str, List[PolicyRule]] = {}
        if document is not None:
            self._models.update((m.id, m) for m in document.models)
            self._permissions.update((p.id, p) for p in document.permissions)
            self._enforcers.update((e.id, e) for e in document.enforcers)
            for rule in document.rules:
                self._rules.setdefault(rule.adapter, []).append(rule)

    # ------------------------------------------------------------------
    async def get_permission(self, permission_id: str) -> Permission | None:
        return self._permissions.get(permission_id)

    async def get_permissions_by_model(self, owner: str, name: str) -> list[Permission]:
        model_id = f"{owner}/{name}"
        return [p for p in self._permissions.values() if p.model == model_id]

    async def get_permissions_by_resource(self, resource_id: str) -> list[Permission]:
        return [p for p in self._permissions.values() if resource_id in p.resources]

    async def get_model(self, model_id: str) -> PolicyModel | None:
        return self._models.get(model_id)

    async def get_rules(self, adapter: str) -> list[PolicyRule]:
        return list(self._rules.get(adapter, []))

    async def get_enforcer(self, enforcer_id: str) -> EnforcerRecord | None:
        return self._enforcers.get(enforcer_id)

    # ------------------------------------------------------------------
    async def save_model(self, model: PolicyModel) -> None:
        self._models[model.id] = model

    async def save_permission(self, permission: Permission) -> None:
        self._permissions[permission.id] = permission

    async def save_enforcer(self, enforcer: EnforcerRecord) -> None:
        self._enforcers[enforcer.id] = enforcer

    async def add_rules(self, rules: Iterable[PolicyRule]) -> None:
        for rule in rules:
            self._rules.setdefault(rule.adapter, []).append(rule)
