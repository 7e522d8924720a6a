"""Store exceptions.

Raised by the catalog, order and auth modules when a request can't be
honoured. The Flask app renders them as ``{"error": message}`` with
``status_code``.
"""


class StoreError(Exception):
    status_code = 500

    def __init__(self, message):
        super().__init__(message)
        self.message = message


class ValidationError(StoreError):
    """Missing or malformed input. Raised before anything is written."""
    status_code = 400


class AuthError(StoreError):
    """Bad credentials, bad token or missing admin token."""
    status_code = 401


class NotFoundError(StoreError):
    status_code = 404


class ConflictError(StoreError):
    """Duplicate email, or stock taken by a concurrent order."""
    status_code = 409


class StorageError(StoreError):
    """The database failed underneath us. The transaction was rolled back."""
    status_code = 500
