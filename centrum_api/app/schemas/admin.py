"""
Pydantic models for the admin session endpoints.
"""

from typing import Any

from pydantic import BaseModel, Field


class AdminLogin(BaseModel):
    """Login payload.

    ``pin`` is typed loosely so that a malformed value reaches the
    endpoint and is rejected with 400 rather than a schema error.
    """

    pin: Any = Field(None, examples=["1234"])


class AuthStatus(BaseModel):
    authed: bool


class OkResponse(BaseModel):
    ok: bool = True
