# site_settings.py
import logging
from typing import Dict, Optional

from fastapi import APIRouter, Depends, Request

from .auth import require_api_auth
from .credentials import CREDENTIAL_KEYS
from .db import list_settings, set_settings
from .errors import InvalidSettingsUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin/settings", tags=["settings"])

# Telegram notification config lives here too (telegram_bot_token, telegram_chat_id)


def _db_path(request: Request) -> str:
    return request.app.state.settings.DB_PATH


@router.get("")
def read_settings(request: Request, principal: str = Depends(require_api_auth)):
    values = list_settings(_db_path(request))
    return {
        "success": True,
        "settings": {k: v for k, v in values.items() if k not in CREDENTIAL_KEYS},
    }


@router.put("")
def update_settings(payload: Dict[str, Optional[str]], request: Request,
                    principal: str = Depends(require_api_auth)):
    forbidden = sorted(CREDENTIAL_KEYS.intersection(payload))
    if forbidden:
        raise InvalidSettingsUpdate(f"read-only keys: {', '.join(forbidden)}")
    if not payload:
        raise InvalidSettingsUpdate("no settings given")
    set_settings(_db_path(request), payload)
    logger.info("admin '%s' updated settings: %s", principal, ", ".join(sorted(payload)))
    return {"success": True, "updated": sorted(payload)}
