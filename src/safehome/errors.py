"""
SafeHome Error Taxonomy

- ValidationFailed: rejected locally before any write
- StoreWriteError: remote write rejected; surfaced as a notice, never retried
- DocumentNotFound / InvalidTransition / OperationInProgress: request-level conflicts
- AuthenticationFailed / NotAuthenticated: session problems
"""

from typing import Optional


class SafeHomeError(Exception):
    """Base class for all console errors."""

    status_code: int = 400

    def __init__(self, message: str, *, title: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.title = title or self.__class__.__name__


class ValidationFailed(SafeHomeError):
    """Required field missing or malformed. Nothing was written."""
    status_code = 422


class StoreWriteError(SafeHomeError):
    """The document store rejected a write."""
    status_code = 502

    def __init__(self, message: str, *, title: Optional[str] = None, cause: Optional[BaseException] = None):
        super().__init__(message, title=title)
        self.cause = cause


class DocumentNotFound(SafeHomeError):
    status_code = 404

    def __init__(self, collection: str, doc_id: str):
        super().__init__(f"{collection}/{doc_id} not found")
        self.collection = collection
        self.doc_id = doc_id


class InvalidTransition(SafeHomeError):
    status_code = 409


class OperationInProgress(SafeHomeError):
    """A request for the same id is already in flight."""
    status_code = 409

    def __init__(self, action: str, key: str):
        super().__init__(f"{action} already in progress for {key}")
        self.action = action
        self.key = key


class AuthenticationFailed(SafeHomeError):
    status_code = 401


class NotAuthenticated(SafeHomeError):
    status_code = 401
