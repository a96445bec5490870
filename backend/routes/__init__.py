"""FastAPI API endpoints under /api.

Endpoint groups: copy generation, casino search, password check, health.
Everything except /health and /check-password requires the shared app
password in the x-app-password header.
"""

from fastapi import APIRouter

from .auth import router as auth_router
from .casinos import router as casinos_router
from .generate import router as generate_router
from .settings import router as settings_router

router = APIRouter()
router.include_router(settings_router)
router.include_router(auth_router)
router.include_router(casinos_router)
router.include_router(generate_router)
