"""
Error taxonomy for the archive service.

Every layer of the archive chain raises one of these; the HTTP boundary
maps them onto status codes.
"""


class ArchiveError(Exception):
    """Base class for errors surfaced by the archive service."""

    code = "unknown"
    status_code = 500
    default_detail = "Unknown error"

    def __init__(self, detail: str | None = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class InvalidArgument(ArchiveError):
    """Malformed slug, path, token, filter or field mask."""

    code = "invalid_argument"
    status_code = 400
    default_detail = "Invalid argument"


class Unauthenticated(ArchiveError):
    code = "unauthenticated"
    status_code = 401
    default_detail = "Authentication required"


class PermissionDenied(ArchiveError):
    """Caller may not access another user's resources."""

    code = "permission_denied"
    status_code = 403
    default_detail = "Permission denied"


class NotFound(ArchiveError):
    code = "not_found"
    status_code = 404
    default_detail = "Resource not found"


class AlreadyExists(ArchiveError):
    code = "already_exists"
    status_code = 409
    default_detail = "Resource already exists"


class Internal(ArchiveError):
    """Upstream, store or transform failure not caused by caller input."""

    code = "internal"
    status_code = 500
    default_detail = "Internal error"


class Unimplemented(ArchiveError):
    code = "unimplemented"
    status_code = 501
    default_detail = "Operation not implemented"

