from regdesk.services.approval import ApprovalEngine
from regdesk.services.errors import ErrorKind, NotifierFailure, Result, StoreInconsistency
from regdesk.services.record_store import RecordStore
from regdesk.services.registration import RegistrationWorkflow
from regdesk.services.sessions import SessionManager

__all__ = [
    "ApprovalEngine",
    "ErrorKind",
    "NotifierFailure",
    "Result",
    "StoreInconsistency",
    "RecordStore",
    "RegistrationWorkflow",
    "SessionManager",
]
