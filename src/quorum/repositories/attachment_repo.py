"""Attachment metadata records; the bytes live with an external storage engine."""

from __future__ import annotations

from sqlalchemy import select

from quorum.models import Attachment

from .base import RepositoryBase, require_text
from .options import AttachmentParameters

__all__ = ["AttachmentRepository"]


class AttachmentRepository(RepositoryBase):
    def post_attachment(self, params: AttachmentParameters) -> Attachment:
        attachment = Attachment(
            uuid=require_text(params.uuid, "uuid"),
            location_type=params.location_type,
            location_uri=params.location_uri,
            extension=params.extension,
            mime_type=params.mime_type,
            path=params.path,
            binary_image=params.binary_image,
            creator=params.creator,
        )
        self.session.add(attachment)
        self._commit()
        return attachment

    def get_attachment(self, uuid: str) -> Attachment | None:
        return self.session.scalar(select(Attachment).where(Attachment.uuid == uuid))
