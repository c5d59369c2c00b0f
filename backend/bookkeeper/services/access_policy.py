"""
Book Keeper Backend - Access Policy
====================================

What:  Capability checks deciding whether the authenticated actor may run
       an operation on a target identity.
How:   One abstract interface, three concrete policies. Routes declare the
       policy they need (see routes/deps.py) and it is evaluated before the
       route body runs, so no handler carries ad-hoc role conditionals.

Policies:
    AdminOnly           actor must be an admin
    SelfOrAdmin         admins always; users only on their own id, except
                        edit/update where an existing target is enough
    SelfExcludingAdmin  ordinary users only, and only on their own id

Under the SelfOrAdmin edit/update rule any authenticated user may edit
another existing user's profile; test_access_policy.py pins this.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from bookkeeper.exceptions import ForbiddenError, NotFoundError
from bookkeeper.models.user import User

logger = logging.getLogger(__name__)

# Operations for which SelfOrAdmin accepts a foreign but existing target
TARGET_EXISTENCE_OPERATIONS = frozenset({"edit", "update"})


class AccessPolicy(ABC):
    """
    Contract:
        - authorize() returns None when access is granted
        - raises ForbiddenError (or NotFoundError where a policy needs the
          target to exist) when it is not
        - never inspects the request; callers pass the target id and the
          operation name explicitly
    """

    name: str = "policy"

    @abstractmethod
    async def authorize(
        self,
        db: AsyncSession,
        actor: User,
        target_id: Optional[str] = None,
        operation: Optional[str] = None,
    ) -> None:
        ...

    def _deny(self, actor: User, message: str, target_id: Optional[str]) -> ForbiddenError:
        logger.warning(
            "%s denied actor %s (role=%s) on target %s",
            self.name, actor.id, actor.role, target_id,
        )
        return ForbiddenError(message, context={"policy": self.name})


class AdminOnly(AccessPolicy):
    name = "admin_only"

    async def authorize(self, db, actor, target_id=None, operation=None):
        if not actor.is_admin:
            raise self._deny(actor, "Access denied! Only Admins have access.", target_id)


class SelfOrAdmin(AccessPolicy):
    name = "self_or_admin"

    async def authorize(self, db, actor, target_id=None, operation=None):
        if actor.is_admin:
            return
        if not target_id:
            raise self._deny(actor, "Access denied! Only Admin have access.", target_id)
        if target_id == actor.id:
            return
        if operation in TARGET_EXISTENCE_OPERATIONS:
            if await db.get(User, target_id) is None:
                raise NotFoundError(resource="User", resource_id=target_id, message="User not found")
            return
        raise self._deny(
            actor, "Access denied! You can only access your own data.", target_id
        )


class SelfExcludingAdmin(AccessPolicy):
    name = "self_excluding_admin"

    async def authorize(self, db, actor, target_id=None, operation=None):
        if actor.is_admin:
            raise self._deny(
                actor, "Access denied! This action is for library members only.", target_id
            )
        if target_id and target_id != actor.id:
            raise self._deny(
                actor, "Access denied! You can only access your own data.", target_id
            )


admin_only = AdminOnly()
self_or_admin = SelfOrAdmin()
self_excluding_admin = SelfExcludingAdmin()
