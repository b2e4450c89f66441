from urllib.parse import urlparse


def validate_endpoint_url(value: str | None) -> str | None:
    """
    Validate an endpoint URL prompt answer.

    Returns:
        An error message, or None when the value is an absolute URL.
    """
    val = str(value or "").strip()
    if not val:
        return "Endpoint URL is required"
    try:
        parsed = urlparse(val)
        if not parsed.scheme or not parsed.hostname:
            return "Invalid URL format"
    except ValueError:
        return "Invalid URL format"
    return None


def validate_required_secret(value: str | None, label: str = "API key") -> str | None:
    """
    Validate a secret prompt answer (non-empty after trimming).

    Returns:
        An error message, or None if valid.
    """
    val = str(value or "").strip()
    return None if val else f"{label} is required"


def mask_secret(secret: str, visible: int = 4) -> str:
    """Mask a secret for display, keeping only its first characters."""
    if not secret:
        return ""
    if len(secret) <= visible * 2:
        return "*" * len(secret)
    return f"{secret[:visible]}..."


def join_url(base: str, *parts: str) -> str:
    """Join URL path segments without doubling slashes."""
    url = base.rstrip("/")
    for part in parts:
        url = f"{url}/{part.strip('/')}"
    return url
