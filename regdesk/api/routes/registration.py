import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from regdesk.api.deps import get_registration, internal_error, read_payload
from regdesk.schemas import RegistrationRequest, StatsResponse
from regdesk.services.registration import RegistrationWorkflow

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/submit")
async def submit(request: Request, workflow: RegistrationWorkflow = Depends(get_registration)):
    """Register a new applicant into the pending pool and their LGA review queue."""
    try:
        payload = await read_payload(request)
        result = workflow.submit(RegistrationRequest.model_validate(payload))
        return result.to_dict()
    except Exception as e:
        logger.error(f"Submission error: {str(e)}", exc_info=True)
        return internal_error()


@router.get("/records")
def records(
    type: str = Query("pending"),
    group: Optional[str] = None,
    workflow: RegistrationWorkflow = Depends(get_registration),
):
    """
    Dump a table as field-keyed records.
    ?type=pending|verified|group&group=X, or ?type=stats for per-LGA counts.
    """
    try:
        if type.strip().lower() == "stats":
            return StatsResponse(stats=workflow.stats()).model_dump()
        return workflow.list_table(type, group).to_dict()
    except Exception as e:
        logger.error(f"Record listing error: {str(e)}", exc_info=True)
        return internal_error()
