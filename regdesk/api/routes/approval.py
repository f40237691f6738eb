import logging

from fastapi import APIRouter, Depends, Request
from pydantic import ValidationError

from regdesk.api.deps import get_approval, internal_error, read_payload
from regdesk.schemas import ApprovalRequest
from regdesk.services.approval import ApprovalEngine
from regdesk.services.errors import ErrorKind, Result

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/approve")
async def approve(request: Request, engine: ApprovalEngine = Depends(get_approval)):
    """Approve one registration, identified by LGA + email + submission timestamp."""
    try:
        payload = await read_payload(request)
        try:
            body = ApprovalRequest.model_validate(payload)
        except ValidationError as e:
            fields = ", ".join(str(err["loc"][0]) for err in e.errors())
            return Result.fail(ErrorKind.VALIDATION_ERROR, f"Invalid fields: {fields}").to_dict()

        result = engine.approve(body.group, body.email, body.timestamp, body.issued_code)
        return result.to_dict()
    except Exception as e:
        logger.error(f"Approval error: {str(e)}", exc_info=True)
        return internal_error()
