"""Core value types exchanged between the resolver, binder and enforcer."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Union

from pydantic import BaseModel, ConfigDict, field_validator

from .errors import MissingSelector, PolicyLookupError


class AccessRequest(BaseModel):
    """Immutable request tuple, conventionally ``(subject, object, action)``.

    A fourth field carries the domain/tenant for domain-aware models.
    """

    model_config = ConfigDict(frozen=True)

    values: tuple[str, ...]

    @field_validator("values")
    @classmethod
    def _not_empty(cls, values: tuple[str, ...]) -> tuple[str, ...]:
        if not values:
            raise ValueError("access request must contain at least one field")
        return values

    @classmethod
    def of(cls, *values: str) -> "AccessRequest":
        return cls(values=tuple(values))

    @classmethod
    def coerce(cls, request: "AccessRequest | Iterable[str]") -> "AccessRequest":
        """Accept either an ``AccessRequest`` or a plain sequence of strings."""
        if isinstance(request, AccessRequest):
            return request
        return cls(values=tuple(request))

    def __iter__(self):
        return iter(self.values)

    def __len__(self) -> int:
        return len(self.values)


def split_owner_and_name(identifier: str) -> tuple[str, str]:
    """Split an ``owner/name`` identifier into its parts."""
    parts = identifier.split("/")
    if len(parts) != 2 or not all(parts):
        raise PolicyLookupError(
            f"Malformed identifier {identifier!r}: expected 'owner/name'"
        )
    return parts[0], parts[1]


@dataclass(frozen=True)
class PolicyIdentity:
    """The (model, adapter) pair that decides evaluator reuse."""

    model: str
    adapter: str

    def __str__(self) -> str:
        return f"{self.model}|{self.adapter}"


@dataclass(frozen=True)
class PermissionGroup:
    """Permissions sharing one :class:`PolicyIdentity`, in first-seen order."""

    identity: PolicyIdentity
    permission_ids: tuple[str, ...]


# ----------------------------------------------------------------------
# Selectors


@dataclass(frozen=True)
class EvaluatorRef:
    evaluator_id: str


@dataclass(frozen=True)
class PermissionRef:
    permission_id: str


@dataclass(frozen=True)
class ModelRef:
    owner: str
    name: str

    @classmethod
    def parse(cls, model_id: str) -> "ModelRef":
        owner, name = split_owner_and_name(model_id)
        return cls(owner=owner, name=name)

    @property
    def model_id(self) -> str:
        return f"{self.owner}/{self.name}"


@dataclass(frozen=True)
class ResourceRef:
    resource_id: str


Selector = Union[EvaluatorRef, PermissionRef, ModelRef, ResourceRef]


def build_selector(
    enforcer_id: Optional[str] = None,
    permission_id: Optional[str] = None,
    model_id: Optional[str] = None,
    resource_id: Optional[str] = None,
) -> Selector:
    """Build the selector for a request from its optional identifiers.

    Precedence is evaluator, then permission, then model, then resource; the
    first non-empty identifier wins.
    """

    if enforcer_id:
        return EvaluatorRef(enforcer_id)
    if permission_id:
        return PermissionRef(permission_id)
    if model_id:
        return ModelRef.parse(model_id)
    if resource_id:
        return ResourceRef(resource_id)
    raise MissingSelector(
        "One of enforcer id, permission id, model id or resource id is required"
    )


__all__ = [
    "AccessRequest",
    "PolicyIdentity",
    "PermissionGroup",
    "EvaluatorRef",
    "PermissionRef",
    "ModelRef",
    "ResourceRef",
    "Selector",
    "build_selector",
    "split_owner_and_name",
]
