"""
Book Keeper Backend - Access Policy Unit Tests
===============================================

What:  AdminOnly, SelfOrAdmin and SelfExcludingAdmin decisions.
How:   Transient User objects and a mocked session; only SelfOrAdmin's
       edit/update rule ever reads the store.
"""

import pytest

from bookkeeper.exceptions import ForbiddenError, NotFoundError
from bookkeeper.models.user import User
from bookkeeper.services.access_policy import admin_only, self_excluding_admin, self_or_admin


def _user(user_id: str, role: str = "user") -> User:
    return User(id=user_id, name=user_id, email=f"{user_id}@library.org", password="x", role=role)


MEMBER = _user("member-1")
ADMIN = _user("admin-1", role="admin")


class TestAdminOnly:

    @pytest.mark.asyncio
    async def test_admin_allowed(self, mock_db_session):
        await admin_only.authorize(mock_db_session, ADMIN)

    @pytest.mark.asyncio
    async def test_member_denied(self, mock_db_session):
        with pytest.raises(ForbiddenError, match="Only Admins"):
            await admin_only.authorize(mock_db_session, MEMBER)


class TestSelfOrAdmin:

    @pytest.mark.asyncio
    async def test_admin_allowed_on_anyone(self, mock_db_session):
        await self_or_admin.authorize(mock_db_session, ADMIN, target_id="someone-else")
        await self_or_admin.authorize(mock_db_session, ADMIN)

    @pytest.mark.asyncio
    async def test_member_allowed_on_self(self, mock_db_session):
        await self_or_admin.authorize(mock_db_session, MEMBER, target_id=MEMBER.id)

    @pytest.mark.asyncio
    async def test_member_without_target_denied(self, mock_db_session):
        # e.g. listing every user
        with pytest.raises(ForbiddenError):
            await self_or_admin.authorize(mock_db_session, MEMBER)

    @pytest.mark.asyncio
    async def test_member_denied_on_other_user(self, mock_db_session):
        with pytest.raises(ForbiddenError, match="your own data"):
            await self_or_admin.authorize(mock_db_session, MEMBER, target_id="member-2")
        mock_db_session.get.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("operation", ["edit", "update"])
    async def test_edit_of_existing_other_user_allowed(self, mock_db_session, operation):
        mock_db_session.get.return_value = _user("member-2")

        await self_or_admin.authorize(
            mock_db_session, MEMBER, target_id="member-2", operation=operation
        )

        mock_db_session.get.assert_awaited_once_with(User, "member-2")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("operation", ["edit", "update"])
    async def test_edit_of_missing_user_not_found(self, mock_db_session, operation):
        mock_db_session.get.return_value = None

        with pytest.raises(NotFoundError, match="User not found"):
            await self_or_admin.authorize(
                mock_db_session, MEMBER, target_id="ghost", operation=operation
            )


class TestSelfExcludingAdmin:

    @pytest.mark.asyncio
    async def test_member_allowed_on_self(self, mock_db_session):
        await self_excluding_admin.authorize(mock_db_session, MEMBER, target_id=MEMBER.id)

    @pytest.mark.asyncio
    async def test_member_allowed_without_target(self, mock_db_session):
        await self_excluding_admin.authorize(mock_db_session, MEMBER)

    @pytest.mark.asyncio
    async def test_member_denied_on_other_user(self, mock_db_session):
        with pytest.raises(ForbiddenError):
            await self_excluding_admin.authorize(mock_db_session, MEMBER, target_id="member-2")

    @pytest.mark.asyncio
    async def test_admin_denied_even_on_self(self, mock_db_session):
        with pytest.raises(ForbiddenError, match="library members only"):
            await self_excluding_admin.authorize(mock_db_session, ADMIN, target_id=ADMIN.id)
