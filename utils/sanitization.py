"""Sanitization utilities for logging."""
from urllib.parse import urlparse, urlunparse, parse_qs, urlencode
import re

SENSITIVE_PARAMS = ('apikey', 'api_key', 'key', 'token', 'secret')


def sanitize_url(url: str) -> str:
    """Redact provider credentials from a URL before it is logged."""
    try:
        parsed = urlparse(url)
        if parsed.query:
            query_params = parse_qs(parsed.query, keep_blank_values=True)
            for param in SENSITIVE_PARAMS:
                if param in query_params:
                    query_params[param] = ['[REDACTED]']
            parsed = parsed._replace(query=urlencode(query_params, doseq=True))
        return urlunparse(parsed)
    except Exception:
        # If parsing fails, return a safe placeholder
        return "[REDACTED_URL]"


def sanitize_params(params: dict) -> dict:
    """Copy of query params with credentials redacted."""
    return {k: ('[REDACTED]' if k.lower() in SENSITIVE_PARAMS else v) for k, v in params.items()}


def sanitize_for_logging(data: str, max_length: int = 100) -> str:
    """Sanitize user input before logging to prevent log injection.

    Args:
        data: The input string to sanitize
        max_length: Maximum length to keep (default 100 chars)

    Returns:
        Sanitized string safe for logging
    """
    if not data or not isinstance(data, str):
        return str(data)[:max_length] if data else ""

    if len(data) > max_length:
        data = data[:max_length] + "..."

    # Replace newlines, tabs, and other control chars with spaces
    data = re.sub(r'[\r\n\t\x00-\x1f\x7f-\x9f]', ' ', data)
    data = re.sub(r'apikey=[^&\s]+', 'apikey=[REDACTED]', data, flags=re.IGNORECASE)
    return re.sub(r'\s+', ' ', data).strip()
