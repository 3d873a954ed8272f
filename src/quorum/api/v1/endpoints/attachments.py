# src/quorum/api/v1/endpoints/attachments.py
"""Attachment metadata endpoints."""

from fastapi import APIRouter, HTTPException, status

from quorum.api.v1.dependencies import CurrentIdentityDep, StoreDep
from quorum.repositories.options import AttachmentParameters
from quorum.schemas.attachment import AttachmentCreate, AttachmentResponse

router = APIRouter(prefix="/attachments", tags=["attachments"])


@router.post("/", response_model=AttachmentResponse, status_code=status.HTTP_201_CREATED)
async def post_attachment(
    payload: AttachmentCreate,
    store: StoreDep,
    identity: CurrentIdentityDep,
) -> AttachmentResponse:
    attachment = store.post_attachment(
        AttachmentParameters(**payload.model_dump(), creator=identity.user_ref)
    )
    return AttachmentResponse.model_validate(attachment)


@router.get("/{uuid}", response_model=AttachmentResponse)
async def get_attachment(uuid: str, store: StoreDep) -> AttachmentResponse:
    attachment = store.get_attachment(uuid)
    if attachment is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Attachment not found")
    return AttachmentResponse.model_validate(attachment)
