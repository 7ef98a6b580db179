"""
Users resource of the Auth0 Management API.

Models for user records and the payloads accepted by the create and update
endpoints, plus the UserManagement mixin that Auth0Client inherits.
"""

import logging
from dataclasses import asdict, dataclass, field, fields
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from .errors import ApiError, MissingRequiredArgumentError
from .utils import drop_none, encode_path_segment, parse_datetime

logger = logging.getLogger(__name__)


@dataclass
class Identity:
    """A linked identity of a user (database, social or enterprise connection)."""
    connection: str
    user_id: str
    provider: str
    is_social: bool = False
    access_token: Optional[str] = None
    profile_data: Optional[Dict[str, Any]] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Identity":
        return cls(
            connection=data.get("connection", ""),
            # Auth0 returns numeric ids for some social providers
            user_id=str(data.get("user_id", "")),
            provider=data.get("provider", ""),
            is_social=bool(data.get("isSocial", data.get("is_social", False))),
            access_token=data.get("access_token"),
            profile_data=data.get("profileData"),
        )


_USER_DATETIME_FIELDS = ("created_at", "updated_at", "last_login")


@dataclass
class User:
    """
    A user as returned by the Management API.

    Timestamps are parsed to timezone-aware datetimes. Attributes that this
    model does not know about are kept in ``extra``. Every attribute may be
    missing when the request restricted ``fields``.
    """
    user_id: Optional[str] = None
    email: Optional[str] = None
    email_verified: Optional[bool] = None
    username: Optional[str] = None
    phone_number: Optional[str] = None
    phone_verified: Optional[bool] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    last_login: Optional[datetime] = None
    identities: List[Identity] = field(default_factory=list)
    app_metadata: Optional[Dict[str, Any]] = None
    user_metadata: Optional[Dict[str, Any]] = None
    picture: Optional[str] = None
    name: Optional[str] = None
    nickname: Optional[str] = None
    given_name: Optional[str] = None
    family_name: Optional[str] = None
    multifactor: Optional[List[str]] = None
    last_ip: Optional[str] = None
    logins_count: Optional[int] = None
    blocked: Optional[bool] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "User":
        if not isinstance(data, dict):
            raise ApiError("invalid_response", "User record is not a JSON object", 502, json=data)

        known = {f.name for f in fields(cls)} - {"identities", "extra"}
        values = {key: value for key, value in data.items() if key in known}
        for name in _USER_DATETIME_FIELDS:
            values[name] = parse_datetime(values.get(name))

        return cls(
            identities=[Identity.from_dict(i) for i in data.get("identities") or []],
            extra={key: value for key, value in data.items() if key not in known and key != "identities"},
            **values,
        )


@dataclass
class CreateUserPayload:
    """Body of POST /api/v2/users. ``connection`` is required by Auth0."""
    connection: str
    email: Optional[str] = None
    phone_number: Optional[str] = None
    user_metadata: Optional[Dict[str, Any]] = None
    blocked: Optional[bool] = None
    email_verified: Optional[bool] = None
    phone_verified: Optional[bool] = None
    app_metadata: Optional[Dict[str, Any]] = None
    given_name: Optional[str] = None
    family_name: Optional[str] = None
    name: Optional[str] = None
    nickname: Optional[str] = None
    picture: Optional[str] = None
    user_id: Optional[str] = None
    verify_email: Optional[bool] = None
    username: Optional[str] = None
    password: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return drop_none(asdict(self))


@dataclass
class UpdateUserPayload:
    """Body of PATCH /api/v2/users/{id}. Only the fields that are set are sent."""
    blocked: Optional[bool] = None
    email_verified: Optional[bool] = None
    email: Optional[str] = None
    phone_number: Optional[str] = None
    phone_verified: Optional[bool] = None
    user_metadata: Optional[Dict[str, Any]] = None
    app_metadata: Optional[Dict[str, Any]] = None
    given_name: Optional[str] = None
    family_name: Optional[str] = None
    name: Optional[str] = None
    nickname: Optional[str] = None
    picture: Optional[str] = None
    verify_email: Optional[bool] = None
    verify_phone_number: Optional[bool] = None
    password: Optional[str] = None
    connection: Optional[str] = None
    client_id: Optional[str] = None
    username: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return drop_none(asdict(self))


@dataclass
class UserQuery:
    """Query parameters of GET /api/v2/users."""
    page: Optional[int] = None
    per_page: Optional[int] = None
    include_totals: Optional[bool] = None
    sort: Optional[str] = None
    connection: Optional[str] = None
    fields: Optional[List[str]] = None
    include_fields: Optional[bool] = None
    q: Optional[str] = None
    search_engine: Optional[str] = None

    def to_params(self) -> Dict[str, Any]:
        return drop_none(asdict(self))


@dataclass
class UsersPage:
    """A page of users returned when ``include_totals`` is requested."""
    users: List[User]
    start: int = 0
    limit: int = 0
    length: int = 0
    total: int = 0


class UserManagement:
    """
    User operations of the Management API.

    Mixed into Auth0Client, which provides ``request``.
    """

    async def get_users(self, query: Optional[UserQuery] = None) -> Union[List[User], UsersPage]:
        """
        List or search users.

        Returns:
            A list of users, or a UsersPage when ``query.include_totals`` is set.
        """
        params = query.to_params() if query else None
        data = await self.request("GET", "users", params=params)

        if isinstance(data, dict):
            return UsersPage(
                users=[User.from_dict(u) for u in data.get("users", [])],
                start=data.get("start", 0),
                limit=data.get("limit", 0),
                length=data.get("length", 0),
                total=data.get("total", 0),
            )

        logger.debug("Fetched %d users", len(data or []))
        return [User.from_dict(u) for u in data or []]

    async def get_users_by_email(
        self,
        email: str,
        fields: Optional[List[str]] = None,
        include_fields: Optional[bool] = None,
    ) -> List[User]:
        """Find users by email address. Auth0 matches emails case-insensitively."""
        if not email:
            raise MissingRequiredArgumentError("email")

        data = await self.request(
            "GET",
            "users-by-email",
            params={"email": email, "fields": fields, "include_fields": include_fields},
        )
        return [User.from_dict(u) for u in data or []]

    async def get_user(self, user_id: str) -> User:
        if not user_id:
            raise MissingRequiredArgumentError("user_id")

        data = await self.request("GET", f"users/{encode_path_segment(user_id)}")
        return User.from_dict(data)

    async def create_user(self, payload: CreateUserPayload) -> User:
        if not payload.connection:
            raise MissingRequiredArgumentError("connection")

        data = await self.request("POST", "users", body=payload.to_dict())
        logger.debug("Created user %s", data.get("user_id") if isinstance(data, dict) else None)
        return User.from_dict(data)

    async def update_user(self, user_id: str, payload: UpdateUserPayload) -> User:
        if not user_id:
            raise MissingRequiredArgumentError("user_id")

        data = await self.request(
            "PATCH", f"users/{encode_path_segment(user_id)}", body=payload.to_dict()
        )
        return User.from_dict(data)

    async def delete_user(self, user_id: str) -> None:
        """Delete a user. Auth0 answers 204 even when the user does not exist."""
        if not user_id:
            raise MissingRequiredArgumentError("user_id")

        await self.request("DELETE", f"users/{encode_path_segment(user_id)}")
