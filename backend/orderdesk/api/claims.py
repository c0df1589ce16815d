"""Claim (file batch) API endpoints.

    POST /api/orders/{order_id}/claims              — claim a batch of pending files
    GET  /api/orders/{order_id}/claims              — all claims of an order
    GET  /api/claims                                — the caller's active claims
    GET  /api/claims/{claim_id}                     — claim with files and progress
    POST /api/claims/{claim_id}/complete            — complete every file of the claim
    POST /api/claims/{claim_id}/release             — give unfinished files back
    POST /api/claims/{claim_id}/files/{file_id}/complete

Only the claim's owner or an Admin may complete or release it.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..core.auth import AuthContext, require_auth, require_permission
from ..core.permissions import OrderManagementPermissions as P
from ..database import get_db
from ..exceptions import ForbiddenError
from ..schemas.claim import (
    ClaimDetailResponse,
    ClaimRequest,
    ClaimResponse,
    ClaimResultResponse,
    ReleaseResponse,
)
from ..schemas.file_item import FileItemResponse
from ..services import FileBatchService

router = APIRouter(prefix="/api", tags=["claims"])


@router.post("/orders/{order_id}/claims", response_model=ClaimResultResponse)
def claim_batch(
    order_id: int,
    data: Optional[ClaimRequest] = None,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(P.EDIT_FILES.value)),
):
    """Claim up to ``batch_size`` pending files, lowest id first.

    Answers 200 with ``claimed: false`` when nothing is left to claim and
    409 when a concurrent claim took the selected files first.
    """
    data = data or ClaimRequest()
    claim = FileBatchService(db).claim_batch(
        order_id,
        auth.require_user_id(),
        batch_size=data.batch_size,
        folder_id=data.folder_id,
        subfolder_id=data.subfolder_id,
    )
    if claim is None:
        return ClaimResultResponse(claimed=False, message="No files available to claim")
    return ClaimResultResponse(
        claimed=True,
        message=f"Claimed {claim.file_count} files",
        claim=ClaimResponse.model_validate(claim),
    )


@router.get("/orders/{order_id}/claims", response_model=List[ClaimResponse])
def list_order_claims(
    order_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(P.VIEW_CLAIMS.value)),
):
    return FileBatchService(db).get_order_claims(order_id)


@router.get("/claims", response_model=List[ClaimResponse])
def list_my_claims(
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    """Active (not completed) claims of the caller."""
    return FileBatchService(db).get_user_active_batches(auth.require_user_id())


@router.get("/claims/{claim_id}", response_model=ClaimDetailResponse)
def get_claim(
    claim_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    service = FileBatchService(db)
    claim = service.get_claim(claim_id)
    if claim.user_id != auth.user_id and not auth.has_permission(P.VIEW_CLAIMS.value):
        raise ForbiddenError("You can only view your own claims")
    return ClaimDetailResponse(
        claim=ClaimResponse.model_validate(claim),
        files=[FileItemResponse.model_validate(f) for f in service.get_batch_files(claim_id)],
        stats=service.get_batch_stats(claim_id),
    )


@router.post("/claims/{claim_id}/complete", response_model=ClaimResponse)
def complete_claim(
    claim_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    service = FileBatchService(db)
    service.ensure_can_manage(service.get_claim(claim_id), auth.user_id, auth.is_admin)
    return service.complete_batch(claim_id)


@router.post("/claims/{claim_id}/release", response_model=ReleaseResponse)
def release_claim(
    claim_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    service = FileBatchService(db)
    service.ensure_can_manage(service.get_claim(claim_id), auth.user_id, auth.is_admin)
    released = service.release_batch(claim_id)
    return ReleaseResponse(
        claim_id=claim_id,
        released_files=released,
        message=f"Released {released} files",
    )


@router.post("/claims/{claim_id}/files/{file_id}/complete", response_model=FileItemResponse)
def complete_claimed_file(
    claim_id: int,
    file_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    """Complete one file of the claim. 422 if the file is not in it."""
    service = FileBatchService(db)
    service.ensure_can_manage(service.get_claim(claim_id), auth.user_id, auth.is_admin)
    return service.complete_file_in_batch(claim_id, file_id)
