"""Data models for stored policy records."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict

from ..contracts import PolicyIdentity


class PolicyModel(BaseModel):
    """A named policy model definition in the engine's model language."""

    model_config = ConfigDict(frozen=True)

    owner: str
    name: str
    text: str

    @property
    def id(self) -> str:
        return f"{self.owner}/{self.name}"


class PolicyRule(BaseModel):
    """One rule line of a rule source (adapter).

    ``permission_id`` tags policy rules with the permission that produced them
    so that evaluators can be restricted to a subset of permissions.
    """

    model_config = ConfigDict(frozen=True)

    adapter: str
    ptype: str = "p"
    values: tuple[str, ...]
    permission_id: Optional[str] = None


class Permission(BaseModel):
    """A stored permission bound to a policy model and rule source."""

    model_config = ConfigDict(frozen=True)

    owner: str
    name: str
    model: str
    adapter: str
    resources: tuple[str, ...] = ()
    description: str = ""

    @property
    def id(self) -> str:
        return f"{self.owner}/{self.name}"

    @property
    def identity(self) -> PolicyIdentity:
        return PolicyIdentity(model=self.model, adapter=self.adapter)


class EnforcerRecord(BaseModel):
    """Stored definition of a named evaluator."""

    model_config = ConfigDict(frozen=True)

    owner: str
    name: str
    model: str
    adapter: str

    @property
    def id(self) -> str:
        return f"{self.owner}/{self.name}"

    @property
    def identity(self) -> PolicyIdentity:
        return PolicyIdentity(model=self.model, adapter=self.adapter)
