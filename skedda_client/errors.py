"""Exceptions raised by the Skedda client."""


class SkeddaError(Exception):
    """Base class for every error raised by this package."""

    pass


class CredentialsMissing(SkeddaError):
    """Username or password is empty."""

    def __init__(self, message: str = "missing credentials"):
        super().__init__(message)


class AuthenticationFailed(SkeddaError):
    """Login was rejected; ``detail`` carries what the service said."""

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"authentication failed: {detail}")


class InvalidTenant(SkeddaError):
    """The tenant page redirected away to the www host."""

    def __init__(self, tenant: str):
        self.tenant = tenant
        super().__init__(f"invalid domain: {tenant}")


class UnexpectedRedirect(SkeddaError):
    """A redirect pointed somewhere the client does not understand."""

    def __init__(self, location: str):
        self.location = location
        super().__init__(f"unknown URL: {location}")


class RequestRejected(SkeddaError):
    """The service redirected back with an ``err`` query parameter."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"request failed: {reason}")


class TokenNotFound(SkeddaError):
    def __init__(self, message: str = "verification token not found"):
        super().__init__(message)


class UnknownStatus(SkeddaError):
    def __init__(self, status_code: int):
        self.status_code = status_code
        super().__init__(f"unknown status: {status_code}")


class UpstreamError(SkeddaError):
    """Non-2xx response whose body carried an ``errors[0].detail`` message."""

    def __init__(self, detail: str, status_code: int):
        self.detail = detail
        self.status_code = status_code
        super().__init__(detail)


class VenueCountMismatch(SkeddaError):
    def __init__(self, count: int):
        self.count = count
        super().__init__(f"no venue found (expected exactly 1, got {count})")
