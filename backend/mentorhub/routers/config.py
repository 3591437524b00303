from __future__ import annotations

from fastapi import APIRouter

from mentorhub.core.settings import get_settings

router = APIRouter(prefix="/api", tags=["config"])

_settings = get_settings()

# Served to browsers as-is. Never add a secret value here.
DANGER_CONFIG = {
    "hideUserApiKey": _settings.HIDE_USER_API_KEY,
    "disableGPT4": _settings.DISABLE_GPT4,
    "hideBalanceQuery": _settings.HIDE_BALANCE_QUERY,
}


@router.api_route("/config", methods=["GET", "POST"])
async def danger_config():
    return DANGER_CONFIG
