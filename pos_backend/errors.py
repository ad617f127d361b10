class PosError(Exception):
    """Base class for errors surfaced to API callers as ``{"detail": ...}``."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(PosError):
    """Malformed, out-of-range or mismatched input. Nothing was written."""

    status_code = 400


class InsufficientStock(ValidationError):
    pass


class NotFound(PosError):
    status_code = 404


class Conflict(PosError):
    """Unique constraint violation (account number, barcode, email...)."""

    status_code = 409


class InternalError(PosError):
    status_code = 500


class AuthError(PosError):
    status_code = 401


class Forbidden(PosError):
    status_code = 403
