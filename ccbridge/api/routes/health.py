"""Health check endpoint.

Follows the IETF Health Check Response Format draft: ``status`` is one of
``pass`` or ``warn``.
"""

from typing import Any

from fastapi import APIRouter

from ccbridge import __version__
from ccbridge.api.dependencies import SettingsDep


router = APIRouter()


@router.get("/health")
async def health(settings: SettingsDep) -> dict[str, Any]:
    """Report liveness and the configured providers."""
    providers = {
        name: {"adapter": provider.adapter, "base_url": provider.base_url}
        for name, provider in settings.providers.items()
    }
    return {
        "status": "pass" if providers else "warn",
        "version": __version__,
        "service_id": "ccbridge",
        "providers": providers,
    }
