"""User registration — command and handler."""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import String
from protean.utils.globals import current_domain

from marketplace.domain import marketplace, logger
from marketplace.identity.user.user import User, normalize_email
from marketplace.shared.policy import Role


@marketplace.command(part_of="User")
class RegisterUser:
    """Create a new account. Sellers may self-register; admins are promoted by an admin."""

    email: String(required=True, max_length=254)
    password: String(required=True, max_length=128)
    first_name: String(required=True, max_length=50)
    last_name: String(required=True, max_length=50)
    phone: String(max_length=20)
    role: String(choices=Role, default=Role.BUYER.value)


@marketplace.command_handler(part_of=User)
class RegisterUserHandler:
    @handle(RegisterUser)
    def register_user(self, command):
        if command.role == Role.ADMIN.value:
            raise ValidationError({"role": ["Admin accounts cannot be self-registered"]})

        repo = current_domain.repository_for(User)
        email = normalize_email(command.email)
        if repo._dao.query.filter(email=email).all().items:
            raise ValidationError({"email": ["Email is already registered"]})

        user = User.register(
            email=email,
            password=command.password,
            first_name=command.first_name,
            last_name=command.last_name,
            phone=command.phone,
            role=command.role,
        )
        repo.add(user)

        logger.info("user_registered", user_id=str(user.id), role=user.role)
        return str(user.id)
