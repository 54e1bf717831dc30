"""User aggregate root — marketplace accounts for buyers, sellers and admins."""

import re
from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, String
from werkzeug.security import check_password_hash, generate_password_hash

from marketplace.domain import marketplace
from marketplace.identity.user.events import UserLoggedIn, UserRegistered, UserRoleChanged
from marketplace.shared.policy import Role

_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[A-Za-z]{2,}$")

MIN_PASSWORD_LENGTH = 8


class UserStatus(Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"


def normalize_email(email):
    return email.strip().lower() if email else email


@marketplace.aggregate
class User:
    """A person with an account on the marketplace.

    Emails are stored lowercased and are unique across users. Only the
    password hash is kept; ``verify_password`` compares a candidate against it.
    """

    email: String(required=True, max_length=254, unique=True)
    password_hash: String(required=True, max_length=255)
    first_name: String(required=True, max_length=50)
    last_name: String(required=True, max_length=50)
    phone: String(max_length=20)
    role: String(choices=Role, default=Role.BUYER.value)
    status: String(choices=UserStatus, default=UserStatus.ACTIVE.value)
    last_login_at: DateTime()
    created_at: DateTime()
    updated_at: DateTime()

    @invariant.post
    def email_must_be_well_formed(self):
        if self.email and not _EMAIL_PATTERN.match(self.email):
            raise ValidationError({"email": ["Please enter a valid email"]})

    @invariant.post
    def names_must_have_two_characters(self):
        for field in ("first_name", "last_name"):
            value = getattr(self, field)
            if value is not None and len(value.strip()) < 2:
                raise ValidationError({field: ["Must be at least 2 characters"]})

    @property
    def is_active(self):
        return self.status == UserStatus.ACTIVE.value

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}"

    @classmethod
    def register(cls, email, password, first_name, last_name, phone=None, role=Role.BUYER.value):
        if not password or len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError({"password": [f"Password must be at least {MIN_PASSWORD_LENGTH} characters"]})

        now = datetime.now(UTC)
        user = cls(
            email=normalize_email(email),
            password_hash=generate_password_hash(password),
            first_name=first_name,
            last_name=last_name,
            phone=phone,
            role=role,
            status=UserStatus.ACTIVE.value,
            created_at=now,
            updated_at=now,
        )
        user.raise_(
            UserRegistered(
                user_id=user.id,
                email=user.email,
                role=user.role,
                registered_at=now,
            )
        )
        return user

    def verify_password(self, candidate):
        return check_password_hash(self.password_hash, candidate or "")

    def record_login(self):
        now = datetime.now(UTC)
        self.last_login_at = now
        self.updated_at = now
        self.raise_(UserLoggedIn(user_id=self.id, logged_in_at=now))

    def change_role(self, role, changed_by):
        try:
            new_role = Role(role).value
        except ValueError as exc:
            raise ValidationError({"role": [f"Unknown role: {role}"]}) from exc

        previous = self.role
        self.role = new_role
        self.updated_at = datetime.now(UTC)
        self.raise_(
            UserRoleChanged(
                user_id=self.id,
                previous_role=previous,
                new_role=self.role,
                changed_by=changed_by,
            )
        )
