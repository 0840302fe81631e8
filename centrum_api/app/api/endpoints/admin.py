"""
Admin session endpoints.

``POST /login`` exchanges the configured PIN for a signed session
cookie, ``GET /me`` reports whether the caller holds a valid session
and ``POST /logout`` clears the cookie.  None of these endpoints are
themselves gated.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Request, Response, status

from centrum_api.app.core.config import Settings
from centrum_api.app.core.security import (
    check_pin,
    create_session_token,
    get_settings,
    is_admin,
    is_pin_well_formed,
)
from centrum_api.app.schemas.admin import AdminLogin, AuthStatus, OkResponse


logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/login", response_model=OkResponse)
def login(
    response: Response,
    payload: Optional[AdminLogin] = Body(None),
    app_settings: Settings = Depends(get_settings),
) -> OkResponse:
    """Check the PIN and set the session cookie.

    Returns 500 when no PIN or secret is configured, 400 when the PIN
    is not a string of ``ADMIN_PIN_LENGTH`` digits and 401 when it
    does not match.
    """
    if not app_settings.admin_pin or not app_settings.admin_secret:
        logger.error("Admin login attempted but ADMIN_PIN/ADMIN_SECRET are not set")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Admin login not configured",
        )
    pin = payload.pin if payload is not None else None
    if not is_pin_well_formed(pin, app_settings.admin_pin_length):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid PIN format")
    if not check_pin(pin, app_settings.admin_pin):
        logger.warning("Failed admin login attempt")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Wrong PIN")

    token = create_session_token(app_settings.admin_secret)
    response.set_cookie(
        key=app_settings.session_cookie_name,
        value=token,
        max_age=app_settings.session_max_age_seconds,
        httponly=True,
        samesite="lax",
        secure=app_settings.cookie_secure,
        path="/",
    )
    logger.info("Admin session issued")
    return OkResponse()


@router.get("/me", response_model=AuthStatus)
def me(request: Request) -> AuthStatus:
    """Report whether the request carries a valid admin session."""
    return AuthStatus(authed=is_admin(request))


@router.post("/logout", response_model=OkResponse)
def logout(response: Response, app_settings: Settings = Depends(get_settings)) -> OkResponse:
    """Clear the session cookie.  Tokens are stateless, so this is all logout does."""
    response.delete_cookie(key=app_settings.session_cookie_name, path="/")
    return OkResponse()
