"""
Domain errors raised by the engagement services

civicapp/core/exceptions.py

"""


class LedgerError(Exception):
    """Base class for engagement and membership errors"""
    status_code = 500
    code = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(LedgerError):
    """Referenced entity does not exist at mutation time"""
    status_code = 404
    code = "not_found"


class AuthorizationDenied(LedgerError):
    """Actor lacks the required relationship or is outside a policy window"""
    status_code = 403
    code = "forbidden"


class InvalidState(LedgerError):
    """Requested change is already true or is not allowed in the current state"""
    status_code = 409
    code = "conflict"


class PersistenceFailure(LedgerError):
    """Underlying storage write failed; the mutation was not applied"""
    status_code = 503
    code = "persistence_failure"
