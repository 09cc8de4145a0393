class PosError(Exception):
    """Base for every error the POS surfaces to the user."""

    status_code = 500


class ValidationError(PosError):
    """Malformed input, rejected before touching the store."""

    status_code = 400


class AuthError(PosError):
    """Username / PIN pair does not match."""

    status_code = 401


class NotFoundError(PosError):
    """Order id does not exist."""

    status_code = 404


class PersistenceError(PosError):
    """Document store unreachable or rejected the read/write."""

    status_code = 503
