class AppException(Exception):
    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 400,
        target: str | None = None,
        details: list[dict] | None = None,
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.target = target
        self.details = details or []
        super().__init__(message)


class AuthenticationError(AppException):
    def __init__(self, code: str, message: str):
        super().__init__(code, message, status_code=401)


class ValidationError(AppException):
    """Caller supplied something the catalog or provider cannot accept.

    ``target`` names the offending request field and ``details`` carries one
    entry per offending value, so clients can retry with a corrected request.
    """

    def __init__(
        self,
        code: str,
        message: str,
        target: str | None = None,
        values: list[str] | None = None,
    ):
        details = [
            {"code": code, "field": target, "message": value}
            for value in (values or [])
        ]
        super().__init__(code, message, 400, target=target, details=details)
        self.values = list(values or [])


class NotFoundError(AppException):
    def __init__(self, resource: str, identifier: str):
        super().__init__(
            code="NOT_FOUND",
            message=f"{resource} '{identifier}' not found",
            status_code=404,
        )
        self.resource = resource
        self.identifier = identifier


class AuthorizationError(NotFoundError):
    """Caller is not allowed to act on the resource.

    Rendered exactly like ``NotFoundError`` so an unauthorized caller cannot
    tell whether it exists; ``reason`` is only for logs.
    """

    def __init__(self, resource: str, identifier: str, reason: str):
        super().__init__(resource, identifier)
        self.reason = reason


class ConflictError(AppException):
    def __init__(self, code: str, message: str):
        super().__init__(code, message, status_code=409)


class UpstreamProviderError(AppException):
    def __init__(self, provider: str, message: str, status: int | None = None):
        super().__init__(
            code="UPSTREAM_PROVIDER_ERROR",
            message=f"Provider '{provider}' failed: {message}",
            status_code=502,
        )
        self.provider = provider
        self.upstream_status = status


class DatabaseUnavailableError(AppException):
    def __init__(self, message: str = "Database is unavailable"):
        super().__init__(code="DATABASE_UNAVAILABLE", message=message, status_code=503)
