"""Seed a repository from a YAML policy document."""

from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import BaseModel, Field

from .models import EnforcerRecord, Permission, PolicyModel, PolicyRule
from .repository import PolicyRepository


class PolicyDocument(BaseModel):
    """Models, permissions, rules and named evaluators to load together."""

    models: list[PolicyModel] = Field(default_factory=list)
    permissions: list[Permission] = Field(default_factory=list)
    rules: list[PolicyRule] = Field(default_factory=list)
    enforcers: list[EnforcerRecord] = Field(default_factory=list)


def read_document(path: str | Path) -> PolicyDocument:
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    return PolicyDocument.model_validate(data)


async def load_document(repository: PolicyRepository, document: PolicyDocument) -> None:
    for model in document.models:
        await repository.save_model(model)
    for permission in document.permissions:
        await repository.save_permission(permission)
    for enforcer in document.enforcers:
        await repository.save_enforcer(enforcer)
    await repository.add_rules(document.rules)
