"""Credential checks and role management for users."""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from marketplace.domain import marketplace, logger
from marketplace.identity.user.user import User, normalize_email
from marketplace.shared.errors import AuthenticationFailed, load
from marketplace.shared.policy import Action, Actor, authorize


@marketplace.command(part_of="User")
class LogIn:
    email: String(required=True, max_length=254)
    password: String(required=True, max_length=128)


@marketplace.command(part_of="User")
class ChangeUserRole:
    user_id: Identifier(required=True)
    role: String(required=True, max_length=20)
    actor_id: Identifier(required=True)
    actor_role: String(required=True, max_length=20)


@marketplace.command_handler(part_of=User)
class UserAccessHandler:
    @handle(LogIn)
    def log_in(self, command):
        """Verify credentials and record the login. Token issuance happens outside the domain."""
        repo = current_domain.repository_for(User)
        matches = repo._dao.query.filter(email=normalize_email(command.email)).all().items
        user = matches[0] if matches else None

        if user is None or not user.verify_password(command.password):
            logger.info("login_failed", email=normalize_email(command.email))
            raise AuthenticationFailed("Invalid credentials")
        if not user.is_active:
            raise AuthenticationFailed("User account is inactive")

        user.record_login()
        repo.add(user)
        return {"user_id": str(user.id), "role": user.role}

    @handle(ChangeUserRole)
    def change_user_role(self, command):
        actor = Actor(user_id=str(command.actor_id), role=command.actor_role)
        authorize(actor, Action.MANAGE_USERS, message="Only admins can change user roles")

        repo = current_domain.repository_for(User)
        user = load(repo, command.user_id, "User")
        user.change_role(command.role, changed_by=actor.user_id)
        repo.add(user)

        logger.info("user_role_changed", user_id=str(user.id), role=user.role, changed_by=actor.user_id)
