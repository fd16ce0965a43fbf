"""authzgate: authorization decision point over pluggable policy engines."""

from .binding import Evaluator, EvaluatorCache, EvaluatorRegistry
from .contracts import (
    AccessRequest,
    EvaluatorRef,
    ModelRef,
    PermissionGroup,
    PermissionRef,
    PolicyIdentity,
    ResourceRef,
    build_selector,
)
from .enforce import PolicyEnforcer, build_enforcer
from .engine import CasbinEngine, PolicyEngine
from .grouping import group_permissions
from .persistence import get_repository
from .resolver import PermissionResolver

__version__ = "0.1.0"
__all__ = [
    "AccessRequest",
    "CasbinEngine",
    "Evaluator",
    "EvaluatorCache",
    "EvaluatorRef",
    "EvaluatorRegistry",
    "ModelRef",
    "PermissionGroup",
    "PermissionRef",
    "PermissionResolver",
    "PolicyEnforcer",
    "PolicyEngine",
    "PolicyIdentity",
    "ResourceRef",
    "build_enforcer",
    "build_selector",
    "get_repository",
    "group_permissions",
]
