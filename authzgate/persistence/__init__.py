"""Persistence layer for permissions, policy models and rules."""

from __future__ import annotations

import os
from typing import Optional

from ..config import AuthzConfig, load_config
from .inmemory import InMemoryPolicyRepository
from .loader import PolicyDocument, load_document, read_document
from .models import EnforcerRecord, Permission, PolicyModel, PolicyRule
from .repository import PolicyRepository
from .sqlite import SQLitePolicyRepository

try:  # pragma: no cover - optional dependency
    from .postgres import PostgresPolicyRepository
except ImportError:  # pragma: no cover - optional dependency
    PostgresPolicyRepository = None  # type: ignore

_repository_instance: PolicyRepository | None = None


def get_repository(
    database_url: Optional[str] = None, config: Optional[AuthzConfig] = None
) -> PolicyRepository:
    """Factory function to obtain a policy repository.

    The backend is selected based on ``database_url`` which can be provided
    explicitly, via environment variable ``AUTHZGATE_DATABASE_URL`` or
    ``DATABASE_URL``, or from loaded configuration. When no database is
    configured, an in-memory repository is returned.
    """

    global _repository_instance
    if _repository_instance is not None and database_url is None and config is None:
        return _repository_instance

    config = config or load_config()
    database_url = (
        database_url
        or os.getenv("AUTHZGATE_DATABASE_URL")
        or os.getenv("DATABASE_URL")
        or getattr(config, "database_url", None)
    )

    if not database_url:
        _repository_instance = InMemoryPolicyRepository()
        return _repository_instance

    if database_url.startswith("sqlite://"):
        path = database_url.replace("sqlite://", "", 1)
        _repository_instance = SQLitePolicyRepository(path)
    elif database_url.startswith("postgres://") or database_url.startswith(
        "postgresql://"
    ):
        if PostgresPolicyRepository is None:
            raise RuntimeError("Postgres support not available")
        _repository_instance = PostgresPolicyRepository(database_url)
    else:
        raise ValueError(f"Unsupported database backend: {database_url}")

    return _repository_instance


__all__ = [
    "EnforcerRecord",
    "Permission",
    "PolicyModel",
    "PolicyRule",
    "PolicyRepository",
    "SQLitePolicyRepository",
    "PostgresPolicyRepository",
    "InMemoryPolicyRepository",
    "get_repository",
    "PolicyDocument",
    "load_document",
    "read_document",
]
