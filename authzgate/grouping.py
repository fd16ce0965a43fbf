"""Partition permissions by the compiled policy they share."""

from __future__ import annotations

from typing import Dict, Iterable, List

from .contracts import PermissionGroup, PolicyIdentity
from .persistence.models import Permission


def group_permissions(permissions: Iterable[Permission]) -> list[PermissionGroup]:
    """Group permissions by their (model, adapter) identity.

    Groups appear in the order their identity is first seen and each group
    keeps the relative order of its permission ids, so the output is a
    deterministic function of the input order.
    """

    grouped: Dict[PolicyIdentity, List[str]] = {}
    for permission in permissions:
        ids = grouped.setdefault(permission.identity, [])
        if permission.id not in ids:
            ids.append(permission.id)
    return [
        PermissionGroup(identity=identity, permission_ids=tuple(ids))
        for identity, ids in grouped.items()
    ]
