"""
QR code endpoints.
"""
import uuid
from typing import Any, List, Optional

from fastapi import APIRouter, status, Query

from boxkeeper.api.deps import DBSession, CurrentUserId
from boxkeeper.models.qr_code import QrCodeStatus
from boxkeeper.schemas.qr_code import QrCodeBatchCreate, QrCodeMarkPrinted, QrCodeResponse
from boxkeeper.schemas.common import MessageResponse
from boxkeeper.services.qr_code_service import QrCodeService

router = APIRouter()


@router.get("", response_model=List[QrCodeResponse])
async def list_qr_codes(
    db: DBSession,
    user_id: CurrentUserId,
    workspace_id: uuid.UUID = Query(..., description="Workspace to list"),
    qr_status: Optional[QrCodeStatus] = Query(None, alias="status", description="Filter by status"),
) -> Any:
    """
    List QR codes of a workspace, newest first.
    """
    return await QrCodeService(db).list_for_workspace(user_id, workspace_id, qr_status)


@router.post("/batch", response_model=List[QrCodeResponse], status_code=status.HTTP_201_CREATED)
async def generate_batch(
    db: DBSession,
    user_id: CurrentUserId,
    batch: QrCodeBatchCreate,
) -> Any:
    """
    Pre-generate a batch of unassigned QR codes for printing.
    """
    return await QrCodeService(db).generate_batch(user_id, batch)


@router.post("/mark-printed", response_model=MessageResponse)
async def mark_printed(
    db: DBSession,
    user_id: CurrentUserId,
    request: QrCodeMarkPrinted,
) -> Any:
    """
    Flag generated QR codes as printed.
    """
    updated = await QrCodeService(db).mark_printed(user_id, request.workspace_id, request.qr_code_ids)
    return MessageResponse(
        message=f"{updated} QR codes marked as printed",
        data={"updated": updated},
    )


@router.get("/{short_id}", response_model=QrCodeResponse)
async def get_by_short_id(
    db: DBSession,
    user_id: CurrentUserId,
    short_id: str,
) -> Any:
    """
    Resolve a scanned QR label such as ``QR-A1B2C3``.
    """
    return await QrCodeService(db).get_by_short_id(user_id, short_id)
