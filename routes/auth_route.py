"""FastAPI routes for local email/password sessions."""

from typing import Optional

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from controllers import auth_controller as controller
from utils.http_errors import to_http_exception

router = APIRouter(prefix="/api/auth", tags=["auth"])


class RegisterPayload(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    email: str
    password: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class LoginPayload(BaseModel):
    email: str
    password: str


@router.post("/register")
async def register_route(request: Request, payload: RegisterPayload):
    try:
        return await controller.register(
            request, payload.email, payload.password, payload.first_name, payload.last_name
        )
    except HTTPException:
        raise
    except Exception as exc:
        raise to_http_exception(exc) from exc


@router.post("/login")
async def login_route(request: Request, payload: LoginPayload):
    try:
        return await controller.login(request, payload.email, payload.password)
    except HTTPException:
        raise
    except Exception as exc:
        raise to_http_exception(exc) from exc


@router.post("/logout")
async def logout_route(request: Request):
    return await controller.logout(request)


@router.get("/user")
async def current_user_route(request: Request):
    try:
        return await controller.get_current_user(request)
    except HTTPException:
        raise
    except Exception as exc:
        raise to_http_exception(exc) from exc
