# Health router.
# Created: 2026-10-16

from __future__ import annotations

from fastapi import APIRouter, Depends

from invitedesk import __version__
from invitedesk.api.deps import get_app_settings
from invitedesk.api.schemas import HealthResponse
from invitedesk.config import Settings

router = APIRouter(tags=["Health"])


@router.get("/health", response_model=HealthResponse)
async def health(settings: Settings = Depends(get_app_settings)):
    return HealthResponse(version=__version__, demo_mode=settings.demo_mode)
