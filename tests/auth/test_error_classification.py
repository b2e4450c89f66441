from modelauth.auth.errors import BrokerAuthError, BrokerErrorKind, RefreshError, classify_broker_error


class CredentialUnavailableError(Exception):
    pass


def test_classify_broker_errors():
    assert classify_broker_error(TimeoutError("slow")) == BrokerErrorKind.TIMEOUT
    assert classify_broker_error(CredentialUnavailableError("no login")) == BrokerErrorKind.IDENTITY_UNAVAILABLE
    assert classify_broker_error(Exception("403 Forbidden")) == BrokerErrorKind.PERMISSION_DENIED
    assert classify_broker_error(ConnectionError("reset")) == BrokerErrorKind.NETWORK
    assert classify_broker_error(ValueError("weird")) == BrokerErrorKind.UNKNOWN


def test_broker_error_renders_remediation_list():
    cause = ConnectionError("connection refused")
    error = BrokerAuthError("Azure OpenAI authentication failed", cause=cause, remediation=["first", "second"])

    lines = str(error).splitlines()
    assert lines[0] == "Azure OpenAI authentication failed: connection refused"
    assert "Ensure you have:" in lines
    assert lines[-2:] == ["1. first", "2. second"]
    assert error.__cause__ is cause
    assert error.kind == BrokerErrorKind.NETWORK


def test_refresh_error_is_broker_error():
    error = RefreshError("Token refresh failed for p:h", cause=RuntimeError("boom"))
    assert isinstance(error, BrokerAuthError)
    assert str(error) == "Token refresh failed for p:h: boom"
