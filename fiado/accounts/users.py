"""
User Directory

Self-registration, admin approval and credential checks for the people
who operate the app. Sessions are not kept here: authenticate() answers
"are these credentials good", and what the caller remembers afterwards
is the caller's business.
"""

import secrets
from typing import Any, Optional

from pydantic import ValidationError

from fiado.config import AdminSettings
from fiado.logger import get_logger
from fiado.models.accounts import AuthFailure, AuthResult, User, UserRole
from fiado.services.storage import (
    USERS,
    DocumentStoreInterface,
    MalformedRecordError,
)


logger = get_logger(__name__)

# Fields a profile update may touch
PROFILE_FIELDS = {"name", "email", "whatsapp", "password"}


class SelfDeleteError(Exception):
    """A user tried to delete their own account."""
    pass


def _user_from_document(document: dict[str, Any]) -> User:
    try:
        return User.model_validate(document)
    except ValidationError as e:
        raise MalformedRecordError(
            f"User record {document.get('id')!r} does not match the schema: {e}"
        ) from e


class UserDirectory:
    """Operations on the users collection."""

    def __init__(self, store: DocumentStoreInterface):
        self._store = store

    async def _find_by_username(self, username: str) -> Optional[User]:
        matches = await self._store.find_by_field(USERS, "username", username)
        return _user_from_document(matches[0]) if matches else None

    async def ensure_admin(self, admin: AdminSettings) -> Optional[User]:
        """
        Create the configured admin account, or refresh it if it exists.

        Does nothing when no admin credentials are configured.
        """
        if not admin.is_configured:
            return None

        user = User(
            name=admin.name,
            username=admin.username,
            password=admin.password,
            role=UserRole.ADMIN,
            email=admin.email,
            whatsapp=admin.whatsapp,
            approved=True,
        )
        existing = await self._find_by_username(admin.username)
        if existing is None:
            user.id = await self._store.create_document(USERS, user.to_document())
        else:
            user.id = existing.id
            await self._store.set_document(USERS, existing.id, user.to_document())

        logger.info("admin_account_ensured", user_id=user.id, created=existing is None)
        return user

    async def register(
        self,
        name: str,
        username: str,
        password: str,
        email: Optional[str] = None,
        whatsapp: Optional[str] = None,
    ) -> bool:
        """
        Create an unapproved user.

        Returns:
            False if the username is already taken
        """
        if await self._find_by_username(username) is not None:
            logger.info("user_register_rejected", username=username, reason="username_taken")
            return False

        user = User(
            name=name,
            username=username,
            password=password,
            email=email,
            whatsapp=whatsapp,
            role=UserRole.USER,
            approved=False,
        )
        user_id = await self._store.create_document(USERS, user.to_document())
        logger.info("user_registered", user_id=user_id, username=username)
        return True

    async def authenticate(self, username: str, password: str) -> AuthResult:
        """
        Check credentials.

        Returns:
            AuthResult with the user (password stripped), or with
            PENDING_APPROVAL / INVALID_CREDENTIALS
        """
        user = await self._find_by_username(username)
        if user is None or not secrets.compare_digest(
            (user.password or "").encode("utf-8"),
            password.encode("utf-8"),
        ):
            return AuthResult(error=AuthFailure.INVALID_CREDENTIALS)

        if not user.approved:
            return AuthResult(error=AuthFailure.PENDING_APPROVAL)

        return AuthResult(user=user.model_copy(update={"password": None}))

    async def list_users(self) -> list[User]:
        documents = await self._store.list_documents(USERS)
        return [_user_from_document(document) for document in documents]

    async def update_profile(self, user_id: str, **changes: Any) -> bool:
        """
        Change profile fields of a user.

        A password of None leaves the stored password untouched.

        Returns:
            False if the user does not exist
        """
        unknown = set(changes) - PROFILE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update fields: {', '.join(sorted(unknown))}")
        if changes.get("password") is None:
            changes.pop("password", None)

        document = await self._store.get_document(USERS, user_id)
        if document is None:
            return False

        user = _user_from_document(document)
        updated = User.model_validate({**user.model_dump(), **changes})
        await self._store.set_document(USERS, user_id, updated.to_document())
        logger.info("user_profile_updated", user_id=user_id, fields=sorted(changes))
        return True

    async def approve(self, user_id: str) -> bool:
        document = await self._store.get_document(USERS, user_id)
        if document is None:
            return False

        user = _user_from_document(document)
        user.approved = True
        await self._store.set_document(USERS, user_id, user.to_document())
        logger.info("user_approved", user_id=user_id)
        return True

    async def delete_user(self, user_id: str, acting_user_id: str) -> bool:
        """
        Permanently delete a user.

        Raises:
            SelfDeleteError: If a user tries to delete their own account
        """
        if user_id == acting_user_id:
            raise SelfDeleteError("Users cannot delete their own account")

        deleted = await self._store.delete_document(USERS, user_id)
        logger.info("user_deleted", user_id=user_id, by=acting_user_id, deleted=deleted)
        return deleted
