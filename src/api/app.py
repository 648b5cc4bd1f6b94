"""FastAPI application behind the dashboard.

The API is a thin read/write facade over the store. The only pipeline
operation it triggers is an on-demand digest run.
"""

from __future__ import annotations

from contextlib import contextmanager
import logging
import secrets
from typing import Callable, Iterator, List, Optional

from fastapi import Depends, FastAPI, HTTPException, Request, status
from starlette.middleware.sessions import SessionMiddleware

from adapters.sqlite_storage import SQLiteStorage
from api.auth import SESSION_FLAG, is_authenticated, password_matches, require_session
from api.schemas import (
    AuthCheckResponse,
    BackupOut,
    BotStatusOut,
    DigestResultOut,
    LoginRequest,
    MessageOut,
    SuccessResponse,
    WatchConfigCreate,
    WatchConfigOut,
    WatchConfigUpdate,
)
from core.digest import DigestPublisher
from core.models import ConnectionStatus, WatchConfig

LOGGER = logging.getLogger(__name__)

# NOT NULL columns; a null for one of these in a PATCH leaves it unchanged.
NOT_NULL_CONFIG_FIELDS = {
    "server_id",
    "server_name",
    "channel_id",
    "channel_name",
    "monitor_user_id",
    "is_active",
}


@contextmanager
def _store_errors(action: str) -> Iterator[None]:
    """Map unexpected store errors to a 500 with a short message."""

    try:
        yield
    except HTTPException:
        raise
    except Exception as exc:
        LOGGER.exception("Error while trying to %s", action)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to {action}",
        ) from exc


def _storage(request: Request) -> SQLiteStorage:
    return request.app.state.storage


def _publisher(request: Request) -> DigestPublisher:
    return request.app.state.publisher


def create_app(
    storage: SQLiteStorage,
    publisher: DigestPublisher,
    connection_status: Callable[[], ConnectionStatus],
    site_password: str,
    session_secret: Optional[str] = None,
) -> FastAPI:
    """Build the API with its collaborators injected."""

    if not site_password:
        raise ValueError("site_password must not be empty")

    app = FastAPI(title="mediavault")
    app.state.storage = storage
    app.state.publisher = publisher
    app.state.connection_status = connection_status
    app.state.site_password = site_password
    # Without a configured secret, sessions only survive until restart.
    app.add_middleware(SessionMiddleware, secret_key=session_secret or secrets.token_urlsafe(32))

    protected = [Depends(require_session)]

    # Auth

    @app.post("/api/auth/login", response_model=SuccessResponse)
    def login(payload: LoginRequest, request: Request) -> SuccessResponse:
        if not password_matches(payload.password, request.app.state.site_password):
            LOGGER.warning("Rejected dashboard login")
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid password")
        request.session[SESSION_FLAG] = True
        return SuccessResponse()

    @app.post("/api/auth/logout", response_model=SuccessResponse)
    def logout(request: Request) -> SuccessResponse:
        request.session.clear()
        return SuccessResponse()

    @app.get("/api/auth/check", response_model=AuthCheckResponse)
    def auth_check(request: Request) -> AuthCheckResponse:
        return AuthCheckResponse(authenticated=is_authenticated(request))

    # Messages

    @app.get("/api/messages", response_model=List[MessageOut], dependencies=protected)
    def list_messages(request: Request) -> List[MessageOut]:
        with _store_errors("fetch messages"):
            messages = _storage(request).list_messages()
        return [MessageOut.model_validate(message) for message in messages]

    @app.get("/api/messages/{message_id}", response_model=MessageOut, dependencies=protected)
    def get_message(message_id: str, request: Request) -> MessageOut:
        with _store_errors("fetch message"):
            message = _storage(request).get_message(message_id)
        if message is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Message not found")
        return MessageOut.model_validate(message)

    @app.delete("/api/messages/{message_id}", response_model=SuccessResponse, dependencies=protected)
    def delete_message(message_id: str, request: Request) -> SuccessResponse:
        with _store_errors("delete message"):
            _storage(request).delete_message(message_id)
        return SuccessResponse()

    # Watch configs

    @app.get("/api/config", response_model=List[WatchConfigOut], dependencies=protected)
    def list_configs(request: Request) -> List[WatchConfigOut]:
        with _store_errors("fetch configurations"):
            configs = _storage(request).list_configs()
        return [WatchConfigOut.model_validate(config) for config in configs]

    @app.post("/api/config", response_model=WatchConfigOut, dependencies=protected)
    def create_config(payload: WatchConfigCreate, request: Request) -> WatchConfigOut:
        config = WatchConfig(**payload.model_dump())
        with _store_errors("create configuration"):
            saved = _storage(request).save_config(config)
        LOGGER.info("Watch created for channel %s / user %s", saved.channel_id, saved.monitor_user_id)
        return WatchConfigOut.model_validate(saved)

    @app.patch("/api/config/{config_id}", response_model=WatchConfigOut, dependencies=protected)
    def update_config(config_id: str, payload: WatchConfigUpdate, request: Request) -> WatchConfigOut:
        updates = {
            name: value
            for name, value in payload.model_dump(exclude_unset=True).items()
            if value is not None or name not in NOT_NULL_CONFIG_FIELDS
        }
        with _store_errors("update configuration"):
            config = _storage(request).update_config(config_id, updates)
        if config is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Configuration not found")
        return WatchConfigOut.model_validate(config)

    @app.delete("/api/config/{config_id}", response_model=SuccessResponse, dependencies=protected)
    def delete_config(config_id: str, request: Request) -> SuccessResponse:
        with _store_errors("delete configuration"):
            _storage(request).delete_config(config_id)
        return SuccessResponse()

    # Backups

    @app.get("/api/backups", response_model=List[BackupOut], dependencies=protected)
    def list_backups(request: Request) -> List[BackupOut]:
        with _store_errors("fetch backups"):
            backups = _storage(request).list_backups()
        return [BackupOut.model_validate(backup) for backup in backups]

    @app.post(
        "/api/backups/trigger",
        response_model=DigestResultOut,
        response_model_exclude_none=True,
        dependencies=protected,
    )
    async def trigger_backup(request: Request) -> DigestResultOut:
        with _store_errors("trigger backup"):
            result = await _publisher(request).run()
        return DigestResultOut.model_validate(result)

    # Bot status

    @app.get("/api/bot/status", response_model=BotStatusOut, dependencies=protected)
    def bot_status(request: Request) -> BotStatusOut:
        return BotStatusOut.model_validate(request.app.state.connection_status())

    return app
