# src/quorum/schemas/notification.py
"""Wire format of notifications handed to the transport."""

from pydantic import BaseModel, ConfigDict, Field


class NotificationRecipients(BaseModel):
    """Entity-addressed recipient list with the acting user excluded."""

    type: str = "entity"
    entity_ref: list[str] = Field(default_factory=list, alias="entityRef")
    exclude_entity_ref: str | None = Field(None, alias="excludeEntityRef")

    model_config = ConfigDict(populate_by_name=True)


class NotificationPayload(BaseModel):
    title: str
    description: str
    link: str
    topic: str
    # Lets the transport thread or deduplicate related notifications.
    scope: str | None = None


class Notification(BaseModel):
    recipients: NotificationRecipients
    payload: NotificationPayload
