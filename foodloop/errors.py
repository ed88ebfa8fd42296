"""
Application error taxonomy.

Every error carries the HTTP status and a stable machine-readable ``code`` so
clients can tell "log in again" apart from "finish registration" apart from
"someone else got there first".
"""
from typing import Dict


class FoodLoopError(Exception):
    status_code = 500
    code = "internal_error"

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"detail": self.message, "code": self.code}


class AuthenticationRequired(FoodLoopError):
    status_code = 401
    code = "authentication_required"

    def __init__(self, message: str = "Access token required"):
        super().__init__(message)


class AuthenticationInvalid(FoodLoopError):
    status_code = 401
    code = "authentication_invalid"

    def __init__(self, message: str = "Invalid or expired authentication token"):
        super().__init__(message)


class NotRegistered(FoodLoopError):
    status_code = 403
    code = "not_registered"

    def __init__(self, message: str = "User is authenticated but not registered"):
        super().__init__(message)


class Forbidden(FoodLoopError):
    status_code = 403
    code = "forbidden"

    def __init__(self, message: str = "Not authorized"):
        super().__init__(message)


class ValidationFailed(FoodLoopError):
    status_code = 400
    code = "validation_failed"

    def __init__(self, errors: Dict[str, str], message: str = "Validation failed"):
        super().__init__(message)
        self.errors = errors

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["validation_errors"] = self.errors
        return data


class NotFound(FoodLoopError):
    status_code = 404
    code = "not_found"

    def __init__(self, message: str = "Not found"):
        super().__init__(message)


class Conflict(FoodLoopError):
    status_code = 409
    code = "conflict"
    retriable = False

    def __init__(self, message: str = "Conflict"):
        super().__init__(message)

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["retriable"] = self.retriable
        return data


class ListingUnavailable(Conflict):
    code = "listing_unavailable"

    def __init__(self, message: str = "Listing not available"):
        super().__init__(message)


class RetriableConflict(Conflict):
    """Lost a lock or serialization race in the store; the same request may succeed on retry"""
    code = "retriable_conflict"
    retriable = True

    def __init__(self, message: str = "Concurrent update, please retry"):
        super().__init__(message)


class Internal(FoodLoopError):
    pass
