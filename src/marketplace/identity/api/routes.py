"""FastAPI routes for accounts: registration, login and role changes."""

from fastapi import APIRouter, Depends
from protean.utils.globals import current_domain

from marketplace.identity.api.schemas import ChangeRoleRequest, LogInRequest, RegisterUserRequest
from marketplace.identity.user.access import ChangeUserRole, LogIn
from marketplace.identity.user.registration import RegisterUser
from marketplace.identity.user.user import User
from marketplace.shared.http import Envelope, current_actor, ok
from marketplace.shared.policy import Actor

auth_router = APIRouter(prefix="/auth", tags=["auth"])


def user_payload(user: User) -> dict:
    data = user.to_dict()
    data.pop("password_hash", None)
    return data


@auth_router.post("/register", status_code=201, response_model=Envelope, response_model_exclude_none=True)
async def register(body: RegisterUserRequest) -> Envelope:
    command = RegisterUser(
        email=body.email,
        password=body.password,
        first_name=body.first_name,
        last_name=body.last_name,
        phone=body.phone,
        role=body.role,
    )
    user_id = current_domain.process(command, asynchronous=False)
    user = current_domain.repository_for(User).get(user_id)
    return ok(user_payload(user), "User registered successfully")


@auth_router.post("/login", response_model=Envelope, response_model_exclude_none=True)
async def login(body: LogInRequest) -> Envelope:
    result = current_domain.process(LogIn(email=body.email, password=body.password), asynchronous=False)
    return ok(result, "Login successful")


@auth_router.get("/me", response_model=Envelope, response_model_exclude_none=True)
async def me(actor: Actor = Depends(current_actor)) -> Envelope:
    user = current_domain.repository_for(User).get(actor.user_id)
    return ok(user_payload(user))


@auth_router.put("/users/{user_id}/role", response_model=Envelope, response_model_exclude_none=True)
async def change_role(user_id: str, body: ChangeRoleRequest, actor: Actor = Depends(current_actor)) -> Envelope:
    command = ChangeUserRole(
        user_id=user_id,
        role=body.role,
        actor_id=actor.user_id,
        actor_role=actor.role,
    )
    current_domain.process(command, asynchronous=False)
    return ok(message="Role updated")
