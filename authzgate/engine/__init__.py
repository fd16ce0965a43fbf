"""Policy evaluation engines."""

from __future__ import annotations

from .base import PolicyEngine
from .casbin_engine import CasbinEngine, CasbinPolicy

__all__ = ["PolicyEngine", "CasbinEngine", "CasbinPolicy"]
