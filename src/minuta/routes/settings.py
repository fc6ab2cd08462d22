"""Watch folder and provider credential settings."""

from pathlib import Path
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException

from minuta.dependencies import get_store, get_watcher
from minuta.domain import WatchConfig
from minuta.exceptions import WatchDirectoryError
from minuta.infrastructure.interfaces import StoreGateway
from minuta.logging import setup_logging
from minuta.response_models import (
    ApiKeyRequest,
    ApiKeyStatusResponse,
    WatchDirectoryRequest,
    WatchSettingsResponse,
    WatchToggleRequest,
)
from minuta.watcher import DirectoryWatcher

logger = setup_logging()

router = APIRouter(prefix="/settings", tags=["settings"])

StoreDep = Annotated[StoreGateway, Depends(get_store)]
WatcherDep = Annotated[DirectoryWatcher, Depends(get_watcher)]


def _watch_settings(
    watch_config: WatchConfig, watcher: DirectoryWatcher
) -> WatchSettingsResponse:
    return WatchSettingsResponse(
        directories=watch_config.directories,
        directory=watch_config.directory,
        enabled=watch_config.enabled,
        active=watcher.is_active(),
    )


def _start(watcher: DirectoryWatcher, directory: str) -> None:
    try:
        started = watcher.start_watching(directory)
    except WatchDirectoryError as e:
        raise HTTPException(status_code=500, detail=str(e))
    if not started:
        raise HTTPException(status_code=422, detail="Directory does not exist")


@router.get("/watch", response_model=WatchSettingsResponse)
def get_watch_settings(store: StoreDep, watcher: WatcherDep):
    return _watch_settings(store.get_watch_config(), watcher)


@router.put("/watch", response_model=WatchSettingsResponse)
async def set_watch_directory(
    request: WatchDirectoryRequest, store: StoreDep, watcher: WatcherDep
):
    """Selects the watched directory, switching the live watch when enabled."""
    directory = str(Path(request.directory).expanduser().resolve())
    if not Path(directory).is_dir():
        raise HTTPException(status_code=422, detail="Directory does not exist")

    watch_config = store.get_watch_config().select(directory)
    if watch_config.enabled:
        _start(watcher, directory)
    store.save_watch_config(watch_config)
    logger.info("Watch directory selected", extra={"directory": directory})
    return _watch_settings(watch_config, watcher)


@router.post("/watch/toggle", response_model=WatchSettingsResponse)
async def toggle_watching(
    request: WatchToggleRequest, store: StoreDep, watcher: WatcherDep
):
    watch_config = store.get_watch_config()
    if request.enabled:
        if not watch_config.directory:
            raise HTTPException(status_code=422, detail="No watch directory selected")
        _start(watcher, watch_config.directory)
    else:
        watcher.stop_watching()

    watch_config = store.save_watch_config(
        watch_config.model_copy(update={"enabled": request.enabled})
    )
    logger.info("Directory watching toggled", extra={"enabled": request.enabled})
    return _watch_settings(watch_config, watcher)


@router.get("/assemblyai-key", response_model=ApiKeyStatusResponse)
def get_api_key_status(store: StoreDep):
    """Reports whether a credential is stored; the key itself is never returned."""
    return ApiKeyStatusResponse(configured=bool(store.get_transcription_api_key()))


@router.put("/assemblyai-key", response_model=ApiKeyStatusResponse)
def set_api_key(request: ApiKeyRequest, store: StoreDep):
    store.save_transcription_api_key(request.api_key)
    return ApiKeyStatusResponse(configured=bool(store.get_transcription_api_key()))
