# ============================================================================
# CLAUDE CONTEXT - STYLES API EXCEPTIONS
# ============================================================================
# EPOCH: 4 - ACTIVE
# STATUS: Error taxonomy - OGC API Styles
# PURPOSE: Exception hierarchy mapping style service failures to HTTP statuses
# EXPORTS: StylesAPIError and subclasses
# DEPENDENCIES: None (standard library only)
# ============================================================================
"""
Styles API Exception Hierarchy.

Every failure the style service can report is a StylesAPIError carrying the
HTTP status and OGC exception code the triggers return. Two families:

1. Client errors (4xx) - bad content type, unsupported format, invalid style,
   unknown style name.
2. Server faults (5xx) - catalog inconsistencies such as two styles matching
   one name, or a stored style whose format has no registered handler.

Nothing here is retried. Triggers convert these to JSON error bodies;
anything that is not a StylesAPIError becomes a 500.
"""

from typing import Any, Dict, List, Optional


class StylesAPIError(Exception):
    """
    Base class for all style service failures.

    Attributes:
        message: Human readable description
        status_code: HTTP status the trigger responds with
        code: OGC exception code used in the JSON error body
    """

    status_code: int = 500
    code: str = "InternalServerError"

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> Dict[str, Any]:
        """Error body for HTTP responses."""
        return {
            "code": self.code,
            "description": self.message
        }


class BadRequestError(StylesAPIError):
    """
    Malformed request.

    Examples:
        - Missing or unparseable Content-Type header
        - Body not decodable with the declared charset
        - Unknown ?validate= value
    """
    status_code = 400
    code = "BadRequest"


class UnsupportedMediaTypeError(StylesAPIError):
    """No style handler is registered for the declared media type."""
    status_code = 400
    code = "IllegalInputMediaType"


class UnsupportedFormatError(UnsupportedMediaTypeError):
    """
    Content negotiation found no acceptable representation.

    Carries every media type the client listed, in the order tried.
    """
    status_code = 406
    code = "NotAcceptable"

    def __init__(self, message: str, requested: Optional[List[str]] = None):
        super().__init__(message)
        self.requested = list(requested or [])

    def to_dict(self) -> Dict[str, Any]:
        body = super().to_dict()
        body["requested"] = self.requested
        return body


class InvalidStyleError(StylesAPIError):
    """
    Handler reported the style document as invalid.

    Always carries the full error list, never just the first error.
    """
    status_code = 400
    code = "InvalidStyle"

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.errors = list(errors or [])

    def to_dict(self) -> Dict[str, Any]:
        body = super().to_dict()
        body["errors"] = self.errors
        return body


class NotFoundError(StylesAPIError):
    """Requested resource does not exist."""
    status_code = 404
    code = "NotFound"


class StyleNotFoundError(NotFoundError):
    """No style matches the requested name."""


class FormatHandlerNotFoundError(NotFoundError):
    """No registered handler declares the requested format name."""


class AmbiguousStyleError(StylesAPIError):
    """
    More than one style matches a name that must be unique.

    This is a catalog configuration defect, not a client error.
    """
    status_code = 500
    code = "AmbiguousStyle"


class StyleConfigurationError(StylesAPIError):
    """
    Stored style cannot be served with the current configuration.

    Examples:
        - Stored format has no registered handler
        - Native format is output-only and cannot be transcoded
    """
    status_code = 500
    code = "StyleConfigurationError"
