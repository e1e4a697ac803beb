"""Users mixin for the task store client."""

import json
import logging
from typing import TYPE_CHECKING, Any, cast

from todoo_mcp.store.exceptions import StoreAPIError, StoreBadRequestError, StoreNotFoundError
from todoo_mcp.store.models import UserCreate, UserRecord, UserUpdate

if TYPE_CHECKING:
    from todoo_mcp.store.protocols import BaseClientProtocol

logger = logging.getLogger(__name__)


class UsersClientMixin:
    """User account operations for the store client."""

    def _get_users_base_client(self) -> "BaseClientProtocol":
        return cast("BaseClientProtocol", self)

    @staticmethod
    def _parse_user(response_data: dict[str, Any], endpoint: str) -> UserRecord:
        try:
            return UserRecord(**response_data["user"])
        except KeyError as e:
            logger.exception("Failed to extract user from wrapped response format")
            raise StoreAPIError.create_parse_error(endpoint, detail="missing 'user' key") from e
        except Exception as e:
            logger.exception("Failed to parse user response data")
            raise StoreAPIError.create_parse_error(endpoint) from e

    async def _list_users(self, params: dict[str, str] | None = None) -> list[UserRecord]:
        base_client = self._get_users_base_client()
        response_data = (
            await base_client.make_request("GET", "users", params=params)
            if params
            else await base_client.make_request("GET", "users")
        )
        user_list: list[dict[str, Any]] = response_data.get("users", [])
        try:
            return [UserRecord(**user_data) for user_data in user_list]
        except Exception as e:
            logger.exception("Failed to parse user list response data")
            raise StoreAPIError.create_parse_error("users", user_count=len(user_list)) from e

    async def get_user(self, user_id: str) -> UserRecord | None:
        """Fetch one user by ID, or None when the store has no such user.

        Raises:
            StoreBadRequestError: Empty user ID
        """
        if not user_id or not user_id.strip():
            msg = "User ID cannot be empty"
            raise StoreBadRequestError(msg)

        endpoint = f"users/{user_id}"
        try:
            response_data = await self._get_users_base_client().make_request("GET", endpoint)
        except StoreNotFoundError:
            logger.debug("User not found in store: %s", user_id)
            return None
        return self._parse_user(response_data, endpoint)

    async def get_user_by_email(self, email: str) -> UserRecord | None:
        """Fetch the user with this exact email (unique in the store)."""
        matches = await self._list_users({"email": email})
        return matches[0] if matches else None

    async def find_users(self, *, name: str | None = None) -> list[UserRecord]:
        """List users, optionally only those whose name matches exactly."""
        return await self._list_users({"name": name} if name is not None else None)

    async def create_user(self, user_data: UserCreate) -> UserRecord:
        """Insert a user account.

        Raises:
            StoreConflictError: Email already taken (409)
        """
        json_data = json.loads(user_data.model_dump_json())
        response_data = await self._get_users_base_client().make_request(
            "POST", "users", data=json_data
        )
        user = self._parse_user(response_data, "users")
        logger.debug("Created user %s", user.id)
        return user

    async def update_user(self, user_id: str, update: UserUpdate) -> UserRecord:
        """Apply a partial update to a user account."""
        endpoint = f"users/{user_id}"
        json_data = json.loads(update.model_dump_json(exclude_none=True))
        response_data = await self._get_users_base_client().make_request(
            "PATCH", endpoint, data=json_data
        )
        return self._parse_user(response_data, endpoint)

    async def delete_user(self, user_id: str) -> bool:
        """Delete a user account; the store cascades to its tasks."""
        await self._get_users_base_client().make_request("DELETE", f"users/{user_id}")
        logger.debug("Deleted user %s", user_id)
        return True
