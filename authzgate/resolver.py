"""Resolve a selector to the permissions that govern a request."""

from __future__ import annotations

import logging

from .contracts import EvaluatorRef, ModelRef, PermissionRef, ResourceRef, Selector
from .errors import AuthzError, PolicyLookupError
from .persistence import PolicyRepository
from .persistence.models import Permission

logger = logging.getLogger(__name__)


class PermissionResolver:
    """Look up permission records through a :class:`PolicyRepository`."""

    def __init__(self, repository: PolicyRepository) -> None:
        self._repository = repository

    async def resolve(self, selector: Selector) -> list[Permission]:
        """Return the permissions selected by ``selector``.

        A permission selector yields zero or one permission; a missing
        permission is not an error. Store failures raise
        :class:`PolicyLookupError`.
        """

        if isinstance(selector, EvaluatorRef):
            raise TypeError("Evaluator selectors bypass permission resolution")
        if not isinstance(selector, (PermissionRef, ModelRef, ResourceRef)):
            raise TypeError(f"Unsupported selector: {selector!r}")

        try:
            if isinstance(selector, PermissionRef):
                permission = await self._repository.get_permission(
                    selector.permission_id
                )
                permissions = [permission] if permission is not None else []
            elif isinstance(selector, ModelRef):
                permissions = await self._repository.get_permissions_by_model(
                    selector.owner, selector.name
                )
            else:
                permissions = await self._repository.get_permissions_by_resource(
                    selector.resource_id
                )
        except AuthzError:
            raise
        except Exception as exc:
            raise PolicyLookupError(f"Permission lookup failed: {exc}") from exc

        logger.debug("Resolved %r to %d permission(s)", selector, len(permissions))
        return list(permissions)
