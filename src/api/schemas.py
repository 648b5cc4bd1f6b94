"""Request and response schemas for the dashboard API.

Field names are snake_case in Python and camelCase on the wire.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class LoginRequest(ApiModel):
    password: str


class SuccessResponse(ApiModel):
    success: bool = True


class AuthCheckResponse(ApiModel):
    authenticated: bool


class MessageOut(ApiModel):
    id: str
    external_message_id: str
    content: str
    author_id: str
    author_username: str
    author_avatar: Optional[str] = None
    channel_id: str
    channel_name: str
    server_id: str
    server_name: str
    timestamp: datetime
    has_attachments: bool
    attachment_urls: Optional[List[str]] = None
    created_at: datetime


class WatchConfigCreate(ApiModel):
    server_id: str = Field(min_length=1)
    server_name: str = Field(min_length=1)
    channel_id: str = Field(min_length=1)
    channel_name: str = Field(min_length=1)
    monitor_user_id: str = Field(min_length=1)
    backup_channel_id: Optional[str] = None
    backup_channel_name: Optional[str] = None
    is_active: bool = True


class WatchConfigUpdate(ApiModel):
    server_id: Optional[str] = Field(default=None, min_length=1)
    server_name: Optional[str] = Field(default=None, min_length=1)
    channel_id: Optional[str] = Field(default=None, min_length=1)
    channel_name: Optional[str] = Field(default=None, min_length=1)
    monitor_user_id: Optional[str] = Field(default=None, min_length=1)
    backup_channel_id: Optional[str] = None
    backup_channel_name: Optional[str] = None
    is_active: Optional[bool] = None


class WatchConfigOut(ApiModel):
    id: str
    server_id: str
    server_name: str
    channel_id: str
    channel_name: str
    backup_channel_id: Optional[str] = None
    backup_channel_name: Optional[str] = None
    monitor_user_id: str
    is_active: bool
    created_at: datetime


class BackupOut(ApiModel):
    id: str
    message_count: int
    backup_date: datetime
    channel_id: str
    status: str
    created_at: datetime


class DigestResultOut(ApiModel):
    success: bool
    message_count: Optional[int] = None
    error: Optional[str] = None


class BotStatusOut(ApiModel):
    connected: bool
    account_name: Optional[str] = None
