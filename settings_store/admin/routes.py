"""
Admin API for viewing and editing settings
"""
from typing import Any, Callable, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from settings_store.errors import (
    CodecError,
    InvalidKeyError,
    UnknownSettingError,
    UnsupportedValueTypeError,
)
from settings_store.store import SettingsStore
from settings_store.utils.logging import get_logger

logger = get_logger(__name__)


class SettingUpdate(BaseModel):
    """Request body for PUT /api/settings/{key}"""

    value: Any = Field(default=None, description="New value for the setting")


def create_settings_router(
    store: SettingsStore,
    require_admin: Optional[Callable[..., Any]] = None,
) -> APIRouter:
    """
    Build the settings admin router bound to a store

    Args:
        store: Store served by the routes
        require_admin: FastAPI dependency guarding the write routes
    """
    router = APIRouter()
    write_dependencies = [Depends(require_admin)] if require_admin else []

    @router.get("/api/settings")
    async def list_settings():
        """Get all loaded settings"""
        return {"settings": dict(store.get_all())}

    @router.get("/api/settings/{key}")
    async def read_setting(key: str):
        """Get a single setting"""
        try:
            value = store.get(key)
        except UnknownSettingError as e:
            raise HTTPException(status_code=404, detail=str(e))
        return {"key": key, "value": value}

    @router.put("/api/settings/{key}", dependencies=write_dependencies)
    async def update_setting(key: str, update: SettingUpdate):
        """Create or update a setting"""
        try:
            store.set(key, update.value)
        except (InvalidKeyError, UnsupportedValueTypeError, CodecError) as e:
            raise HTTPException(status_code=400, detail=str(e))
        logger.info(f"Setting updated via API: {key}")
        return {"success": True}

    @router.post("/api/settings/reload", dependencies=write_dependencies)
    async def reload_settings(force: bool = False):
        """Reload settings from the cache or the table"""
        success = store.reload(force=force)
        return {"success": success, "count": len(store)}

    return router
