"""Shared-password check used by the web form before it unlocks."""

from fastapi import APIRouter, Request

from backend.deps import check_password

from .models import PasswordBody

router = APIRouter()


@router.post("/check-password")
async def check_password_endpoint(body: PasswordBody, request: Request):
    """Return ok when the password matches BETFUNNELS_APP_PASSWORD."""
    check_password(request.app.state.settings, body.password)
    return {"ok": True}
