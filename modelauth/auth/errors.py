"""Authentication errors and broker failure classification."""

from enum import Enum


class AuthError(Exception):
    """Base class for authentication failures."""


class ValidationError(AuthError):
    """Prompt input rejected by its validator. Handled by re-prompting."""


class AuthCancelledError(AuthError):
    """The user aborted an interactive prompt."""


class RegistrationError(AuthError):
    """A provider registration breaks one of its invariants."""


class ProfileNotFoundError(AuthError):
    """A ``profile:<id>`` reference points at no stored profile."""


class BrokerErrorKind(str, Enum):
    NETWORK = "network"                        # Endpoint unreachable
    IDENTITY_UNAVAILABLE = "identity_unavailable"  # No ambient login/identity
    PERMISSION_DENIED = "permission_denied"    # Identity lacks the role
    TIMEOUT = "timeout"
    UNKNOWN = "unknown"


def classify_broker_error(error: BaseException) -> BrokerErrorKind:
    """Classify an identity broker exception into a specific kind."""
    if isinstance(error, TimeoutError):
        return BrokerErrorKind.TIMEOUT

    name = type(error).__name__
    msg_lower = str(error).lower()

    if name == "CredentialUnavailableError" or "unavailable" in msg_lower:
        return BrokerErrorKind.IDENTITY_UNAVAILABLE

    if "403" in msg_lower or "forbidden" in msg_lower or "authorization" in msg_lower:
        return BrokerErrorKind.PERMISSION_DENIED

    if isinstance(error, (ConnectionError, OSError)) or "connection" in msg_lower or "network" in msg_lower:
        return BrokerErrorKind.NETWORK

    if "timed out" in msg_lower or "timeout" in msg_lower:
        return BrokerErrorKind.TIMEOUT

    return BrokerErrorKind.UNKNOWN


class BrokerAuthError(AuthError):
    """The identity broker could not issue a token.

    ``str(error)`` renders a multi-line message: the failure, then the
    numbered list of things the user can check.
    """

    def __init__(self, message: str, cause: BaseException | None = None, remediation: list[str] | None = None):
        self.message = message
        self.cause = cause
        self.remediation = list(remediation or [])
        self.kind = classify_broker_error(cause) if cause is not None else BrokerErrorKind.UNKNOWN
        super().__init__(self.render())
        if cause is not None:
            self.__cause__ = cause

    def render(self) -> str:
        lines = [f"{self.message}: {self.cause}" if self.cause is not None else self.message]
        if self.remediation:
            lines += ["", "Ensure you have:"]
            lines += [f"{idx}. {item}" for idx, item in enumerate(self.remediation, 1)]
        return "\n".join(lines)


class RefreshError(BrokerAuthError):
    """Broker failure raised while refreshing an existing profile."""
