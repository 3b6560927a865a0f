class PlatformStatsError(Exception):
    """
    Base error for the platform stats layer.
    `status_code` is the HTTP status the API boundary answers with.
    """

    status_code = 500
    error = "Failed to fetch platform stats"

    def __init__(self, message: str = "", *, platform: str | None = None):
        super().__init__(message or self.error)
        self.message = message or self.error
        self.platform = platform

    def to_payload(self) -> dict[str, str]:
        return {"error": self.error, "message": self.message}


class ValidationError(PlatformStatsError):
    status_code = 400
    error = "Invalid request"


class NotFoundError(PlatformStatsError):
    status_code = 404
    error = "User not found"


class TooManyRequests(PlatformStatsError):
    status_code = 429
    error = "Too many requests"


class UpstreamError(PlatformStatsError):
    error = "Upstream error"


class MalformedResponseError(PlatformStatsError):
    error = "Malformed upstream response"


class TransientNetworkError(PlatformStatsError):
    status_code = 503
    error = "Upstream unavailable"


class FetchError(PlatformStatsError):
    pass
