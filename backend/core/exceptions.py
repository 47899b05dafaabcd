"""Custom exception hierarchy for PairLink."""


class PairLinkError(Exception):
    """Base error."""
    status_code = 500

    def __init__(self, message: str, code: str = "PAIRLINK_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class InvalidRequestError(PairLinkError):
    """Malformed or missing request fields."""
    status_code = 400

    def __init__(self, message: str = "Invalid request"):
        super().__init__(message, code="INVALID_REQUEST")


class SessionNotFoundError(PairLinkError):
    """Unknown code / session, or nothing stored for it."""
    status_code = 404

    def __init__(self, message: str = "Not found", code: str = "NOT_FOUND"):
        super().__init__(message, code=code)


class SessionExpiredError(SessionNotFoundError):
    """Code is still bound but its session is past expiry."""
    status_code = 410

    def __init__(self, message: str = "Session expired"):
        super().__init__(message, code="EXPIRED")


class UnauthorizedError(PairLinkError):
    """Access to a session that is not live."""
    status_code = 410

    def __init__(self, message: str = "Session expired"):
        super().__init__(message, code="UNAUTHORIZED")


class PayloadTooLargeError(PairLinkError):
    """Fallback upload above the configured cap."""
    status_code = 413

    def __init__(self, message: str = "Payload too large"):
        super().__init__(message, code="PAYLOAD_TOO_LARGE")


class ResourceExhaustedError(PairLinkError):
    """No free pairing code could be found."""
    status_code = 503

    def __init__(self, message: str = "No pairing codes available"):
        super().__init__(message, code="RESOURCE_EXHAUSTED")
