"""Company user administration: invitations, updates and activity history."""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from typing import Any

from megaport_client._payload import (
    coerce_bool,
    coerce_int,
    coerce_mapping,
    coerce_mapping_list,
    coerce_str,
    parse_epoch_millis,
    require_list,
)
from megaport_client.errors import (
    MegaportResponseError,
    MegaportStateError,
    MegaportValidationError,
)
from megaport_client.services.base import BaseService, drop_none
from megaport_client.utils import is_email

logger = logging.getLogger(__name__)

_PHONE_PATTERN = re.compile(r"^\+?[1-9]\d{1,14}$")
MIN_EMAIL_LENGTH = 5


class UserPosition(StrEnum):
    COMPANY_ADMIN = "Company Admin"
    TECHNICAL_ADMIN = "Technical Admin"
    TECHNICAL_CONTACT = "Technical Contact"
    FINANCE = "Finance"
    FINANCIAL_CONTACT = "Financial Contact"
    READ_ONLY = "Read Only"


VALID_POSITIONS = frozenset(position.value for position in UserPosition)


@dataclass(frozen=True, slots=True)
class UserEmail:
    email_address_id: int
    email: str
    primary: bool
    bad_email: bool


@dataclass(frozen=True, slots=True)
class User:
    party_id: int
    uid: str
    first_name: str
    last_name: str
    name: str
    email: str
    phone: str
    mobile: str
    position: str
    username: str
    active: bool
    invitation_pending: bool
    notification_enabled: bool
    newsletter: bool
    promotions: bool
    channel_manager: bool
    mfa_enabled: bool
    company_id: int
    company_name: str
    employment_id: int
    security_roles: tuple[str, ...] = ()
    emails: tuple[UserEmail, ...] = ()


@dataclass(frozen=True, slots=True)
class UserActivity:
    login_name: str
    person_id: int
    description: str
    name: str
    create_date: datetime | None
    user_type: str


@dataclass(frozen=True, slots=True)
class CreateUserResult:
    company_id: int
    employment_id: int
    employee_id: int


@dataclass(slots=True)
class CreateUserRequest:
    first_name: str
    last_name: str
    email: str
    position: str
    phone: str = ""
    active: bool = True

    def validate(self) -> None:
        _validate_email(self.email, required=True)
        if not self.first_name.strip():
            raise MegaportValidationError("first_name", "it is required and cannot be empty")
        if not self.last_name.strip():
            raise MegaportValidationError("last_name", "it is required and cannot be empty")
        _validate_phone(self.phone)
        if not self.position:
            raise MegaportValidationError("position", "it is required")
        _validate_position(self.position)

    def to_payload(self) -> dict[str, Any]:
        return {
            "firstName": self.first_name,
            "lastName": self.last_name,
            "active": self.active,
            "email": self.email,
            "phone": self.phone,
            "position": self.position,
        }


@dataclass(slots=True)
class UpdateUserRequest:
    """Partial update; fields left as ``None`` are not sent."""

    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    phone: str | None = None
    position: str | None = None
    company_id: int | None = None
    active: bool | None = None
    notification_enabled: bool | None = None
    newsletter: bool | None = None
    promotions: bool | None = None
    channel_manager: bool | None = None
    security_roles: list[str] | None = None

    def validate(self) -> None:
        if self.first_name is not None and not self.first_name.strip():
            raise MegaportValidationError("first_name", "it cannot be empty if provided")
        if self.last_name is not None and not self.last_name.strip():
            raise MegaportValidationError("last_name", "it cannot be empty if provided")
        if self.phone:
            _validate_phone(self.phone)
        if self.email:
            _validate_email(self.email, required=False)
        if self.position:
            _validate_position(self.position)
        if self.company_id is not None and self.company_id <= 0:
            raise MegaportValidationError("company_id", "it must be a positive integer")

    def to_payload(self) -> dict[str, Any]:
        return drop_none(
            {
                "firstName": self.first_name,
                "lastName": self.last_name,
                "email": self.email,
                "phone": self.phone,
                "position": self.position,
                "companyId": self.company_id,
                "active": self.active,
                "notificationEnabled": self.notification_enabled,
                "newsletter": self.newsletter,
                "promotions": self.promotions,
                "channelManager": self.channel_manager,
                "securityRoles": self.security_roles,
            }
        )


class UserManagementService(BaseService):
    def create_user(self, request: CreateUserRequest) -> CreateUserResult:
        request.validate()
        envelope = self._client.call("POST", "/v2/employment", json_body=request.to_payload())
        data = coerce_mapping(envelope.data)
        if not data:
            raise MegaportResponseError("create user response contained no data")
        return CreateUserResult(
            company_id=coerce_int(data.get("companyId")),
            employment_id=coerce_int(data.get("employmentId")),
            employee_id=coerce_int(data.get("employeeId")),
        )

    def get_user(self, employee_id: int) -> User:
        envelope = self._client.call("GET", f"/v2/employee/{employee_id}")
        return parse_user(coerce_mapping(envelope.data))

    def list_company_users(self) -> list[User]:
        envelope = self._client.call("GET", "/v2/employment")
        users = [parse_user(item) for item in coerce_mapping_list(envelope.data)]
        logger.debug("listed company users count=%d", len(users))
        return users

    def update_user(self, employee_id: int, request: UpdateUserRequest) -> None:
        request.validate()
        existing = self.get_user(employee_id)
        if existing.invitation_pending:
            raise MegaportStateError(
                f"cannot update user {employee_id}: user has not accepted invitation yet"
            )
        logger.debug("updating user employee_id=%d", employee_id)
        self._client.call("PUT", f"/v2/employee/{employee_id}", json_body=request.to_payload())

    def deactivate_user(self, employee_id: int) -> None:
        self._client.call("PUT", f"/v2/employee/{employee_id}", json_body={"active": False})

    def delete_user(self, employee_id: int) -> None:
        existing = self.get_user(employee_id)
        if not existing.invitation_pending:
            raise MegaportStateError(
                f"user {employee_id} has already logged in and cannot be deleted, only deactivated"
            )
        self._client.call("DELETE", f"/v2/employee/{employee_id}")

    def get_user_activity(
        self,
        *,
        person_id_or_uid: str | None = None,
        company_id_or_uid: str | None = None,
    ) -> list[UserActivity]:
        params = drop_none(
            {
                "personIdOrUid": person_id_or_uid or None,
                "companyIdOrUid": company_id_or_uid or None,
            }
        )
        payload = self._client.request_json("GET", "/v3/activity", params=params or None)
        return [
            UserActivity(
                login_name=coerce_str(item.get("loginName")),
                person_id=coerce_int(item.get("personId")),
                description=coerce_str(item.get("description")),
                name=coerce_str(item.get("name")),
                create_date=parse_epoch_millis(item.get("createDate")),
                user_type=coerce_str(item.get("userType")),
            )
            for item in coerce_mapping_list(require_list(payload or [], context="user activity"))
        ]


def parse_user(payload: Mapping[str, Any]) -> User:
    # List responses use personId/personUid where single lookups use partyId/uid.
    party_id = coerce_int(payload.get("partyId")) or coerce_int(payload.get("personId"))
    uid = coerce_str(payload.get("uid")) or coerce_str(payload.get("personUid"))
    roles = payload.get("securityRoles")
    return User(
        party_id=party_id,
        uid=uid,
        first_name=coerce_str(payload.get("firstName")),
        last_name=coerce_str(payload.get("lastName")),
        name=coerce_str(payload.get("name")),
        email=coerce_str(payload.get("email")),
        phone=coerce_str(payload.get("phone")),
        mobile=coerce_str(payload.get("mobile")),
        position=coerce_str(payload.get("position")),
        username=coerce_str(payload.get("username")),
        active=coerce_bool(payload.get("active")),
        invitation_pending=coerce_bool(payload.get("invitationPending")),
        notification_enabled=coerce_bool(payload.get("notificationEnabled")),
        newsletter=coerce_bool(payload.get("newsletter")),
        promotions=coerce_bool(payload.get("promotions")),
        channel_manager=coerce_bool(payload.get("channelManager")),
        mfa_enabled=coerce_bool(payload.get("mfaEnabled")),
        company_id=coerce_int(payload.get("companyId")),
        company_name=coerce_str(payload.get("companyName")),
        employment_id=coerce_int(payload.get("employmentId")),
        security_roles=tuple(role for role in roles if isinstance(role, str))
        if isinstance(roles, list)
        else (),
        emails=tuple(
            UserEmail(
                email_address_id=coerce_int(item.get("emailAddressId")),
                email=coerce_str(item.get("email")),
                primary=coerce_bool(item.get("primary")),
                bad_email=coerce_bool(item.get("badEmail")),
            )
            for item in coerce_mapping_list(payload.get("emails"))
        ),
    )


def _validate_email(email: str, *, required: bool) -> None:
    if not email:
        if required:
            raise MegaportValidationError("email", "it is required")
        return
    if len(email) < MIN_EMAIL_LENGTH:
        raise MegaportValidationError(
            "email", f"it must be at least {MIN_EMAIL_LENGTH} characters long"
        )
    if not is_email(email):
        raise MegaportValidationError("email", f"{email!r} is not a valid address")


def _validate_phone(phone: str) -> None:
    if phone and _PHONE_PATTERN.match(phone) is None:
        raise MegaportValidationError(
            "phone", "it must be in international format (e.g. +1234567890)"
        )


def _validate_position(position: str) -> None:
    if position not in VALID_POSITIONS:
        allowed = ", ".join(item.value for item in UserPosition)
        raise MegaportValidationError("position", f"it must be one of: {allowed}")
