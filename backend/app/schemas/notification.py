from pydantic import BaseModel, Field
from datetime import datetime
from typing import List

from ..models.notification import NotificationType


class NotificationCreate(BaseModel):
    user_id: int
    title: str = Field(min_length=1)
    message: str = Field(min_length=1)
    type: NotificationType = NotificationType.SYSTEM


class NotificationResponse(BaseModel):
    id: int
    user_id: int
    title: str
    message: str
    type: NotificationType
    is_read: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class NotificationMarkRead(BaseModel):
    notification_ids: List[int] = Field(alias="notificationIds")

    model_config = {"populate_by_name": True}


class NotificationMarkReadResponse(BaseModel):
    message: str
    updated: int
