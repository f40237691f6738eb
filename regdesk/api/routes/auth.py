import logging

from fastapi import APIRouter, Depends, Request

from regdesk.api.deps import get_sessions, internal_error, read_payload
from regdesk.schemas import AuthRequest
from regdesk.services.errors import ErrorKind, Result
from regdesk.services.sessions import SessionManager

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/auth")
async def auth(request: Request, sessions: SessionManager = Depends(get_sessions)):
    """Session actions: login | validateToken | logout | getUserInfo"""
    try:
        body = AuthRequest.model_validate(await read_payload(request))

        if body.action == "login":
            return sessions.login(body.username, body.password).to_dict()

        if body.action == "validateToken":
            result = sessions.validate(body.token)
            response = result.to_dict()
            response["valid"] = response.pop("success")
            return response

        if body.action == "logout":
            return sessions.logout(body.token).to_dict()

        if body.action == "getUserInfo":
            return sessions.get_user_info(body.token).to_dict()

        return Result.fail(ErrorKind.VALIDATION_ERROR, f"Unknown action: {body.action}").to_dict()
    except Exception as e:
        logger.error(f"Auth error: {str(e)}", exc_info=True)
        return internal_error()
