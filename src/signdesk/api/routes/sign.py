"""Document signing route."""

from fastapi import APIRouter

from signdesk.api.dependencies.auth import CurrentUser
from signdesk.api.routes.documents import QUOTA_RESPONSES, DocumentServiceDep
from signdesk.billing.modes import ProcessingMode
from signdesk.schemas.documents import SignRequest, SignResponse

router = APIRouter()


@router.post("", response_model=SignResponse, responses=QUOTA_RESPONSES)
async def sign_document(
    request: SignRequest,
    current_user: CurrentUser,
    document_service: DocumentServiceDep,
) -> SignResponse:
    """Sign a document for one of its signers."""
    outcome = await document_service.sign(current_user.id, request)
    result = outcome.value

    if outcome.mode == ProcessingMode.LIVE:
        message = "Document signed successfully in LIVE mode"
    else:
        message = "Document signing simulated in PREVIEW mode"

    return SignResponse(
        message=message,
        mode=outcome.mode,
        document_id=result.document_id,
        signer_id=result.signer_id,
        document_status=result.document_status,
        signed_at=result.signed_at,
    )
