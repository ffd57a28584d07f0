"""/api/auth — login, logout and current-session lookup for the single admin account."""
import logging
from fastapi import APIRouter, Request, Response
from fastapi.responses import JSONResponse

from config import settings
from core.auth import create_session, login, session_user, validate_session
from core.errors import AuthenticationError
from models.auth import LoginCredentials

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/auth/login")
def login_route(credentials: LoginCredentials, response: Response):
    user = login(credentials)
    if user is None:
        raise AuthenticationError("Invalid username or password")

    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=create_session(user),
        max_age=settings.SESSION_MAX_AGE_SECONDS,
        httponly=True,
        secure=settings.SESSION_COOKIE_SECURE,
        samesite="lax",
        path="/",
    )
    logger.info("User %s logged in", user.username)
    return {
        "success": True,
        "message": "Login successful",
        "user": {"id": user.id, "username": user.username},
    }


@router.get("/auth/login")
def login_wrong_method():
    return JSONResponse({"message": "Method not allowed. Use POST to login."}, status_code=405)


@router.post("/auth/logout")
def logout_route(response: Response):
    response.delete_cookie(settings.SESSION_COOKIE_NAME, path="/")
    return {"success": True, "message": "Logged out successfully"}


@router.get("/auth/logout")
def logout_wrong_method():
    return JSONResponse({"message": "Method not allowed. Use POST to logout."}, status_code=405)


@router.get("/auth/session")
def current_session(request: Request):
    token = request.cookies.get(settings.SESSION_COOKIE_NAME)
    session = validate_session(token) if token else None
    if session is None:
        raise AuthenticationError("Not authenticated")
    return {"success": True, "user": session_user(session).model_dump()}
