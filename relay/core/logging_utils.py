import re
from typing import Any, Dict, Iterable, Optional
from fastapi import Request

MASK = "***MASKED***"


def mask_sensitive_data(data: Any, mask_string: str = MASK) -> Any:
    """
    Recursively mask sensitive data in dictionaries, lists, and strings.

    Args:
        data: Data structure to mask (dict, list, str, or other)
        mask_string: String to use for masking

    Returns:
        Masked data structure
    """
    if isinstance(data, dict):
        masked = {}
        for key, value in data.items():
            key_lower = str(key).lower()

            # NEVER mask request_id - it's needed for traceability
            if key_lower == "requestid" or key_lower == "request_id":
                masked[key] = value
            # Mask API keys (ours and the collaborators')
            elif any(term in key_lower for term in ["api_key", "apikey", "x-api-key", "api-key", "appid", "key"]):
                masked[key] = mask_string
            # Mask tokens (but not request_id)
            elif any(term in key_lower for term in ["token", "access_token", "jwt", "authorization", "bearer"]):
                masked[key] = mask_string
            # Mask passwords and secrets
            elif any(term in key_lower for term in ["password", "secret", "secret_key", "private_key"]):
                masked[key] = mask_string
            # Recursively process nested structures
            else:
                masked[key] = mask_sensitive_data(value, mask_string)

        return masked

    elif isinstance(data, list):
        return [mask_sensitive_data(item, mask_string) for item in data]

    elif isinstance(data, str):
        # Mask JWT tokens (starts with eyJ)
        if data.startswith("eyJ") and len(data) > 50:
            return mask_string
        # Mask long opaque tokens (> 32 chars, URL-safe alphabet, no spaces)
        if len(data) > 32 and re.match(r'^[A-Za-z0-9_-]+$', data) and '-' not in data:
            return mask_string

        return data

    return data


def redact_secrets(text: str, secrets: Iterable[Optional[str]], mask_string: str = MASK) -> str:
    """
    Remove known credential values from free text.

    Used on upstream error messages before they reach logs or responses,
    since collaborator URLs may carry the key as a query parameter.
    """
    for secret in secrets:
        if secret:
            text = text.replace(secret, mask_string)
    return text


def mask_headers(headers: Dict[str, str]) -> Dict[str, str]:
    """
    Mask sensitive HTTP headers.

    Args:
        headers: Dictionary of HTTP headers

    Returns:
        Dictionary with sensitive headers masked
    """
    masked = {}
    sensitive_headers = [
        "authorization",
        "x-api-key",
        "api-key",
        "x-auth-token",
        "cookie",
        "set-cookie"
    ]

    for key, value in headers.items():
        key_lower = key.lower()
        if any(sensitive in key_lower for sensitive in sensitive_headers):
            masked[key] = MASK
        else:
            masked[key] = value

    return masked


def get_request_id(request: Optional[Request]) -> Optional[str]:
    """Extract request ID from request state, or None if not available."""
    if request and hasattr(request.state, "request_id"):
        return request.state.request_id
    return None


def sanitize_log_message(message: str, **kwargs: Any) -> str:
    """
    Sanitize log message by masking sensitive data in keyword arguments.

    Args:
        message: Base log message
        **kwargs: Additional context to include (will be masked).
                  RequestID is appended last so the formatter can lift it out.

    Returns:
        Sanitized log message with context
    """
    request_id = kwargs.pop('RequestID', None) or kwargs.pop('request_id', None)

    masked_kwargs = mask_sensitive_data(kwargs)

    context_parts = []
    for key, value in masked_kwargs.items():
        if isinstance(value, (dict, list)):
            value_str = str(value)[:200]  # Limit length
            context_parts.append(f"{key}: {value_str}")
        else:
            context_parts.append(f"{key}: {value}")

    if context_parts:
        formatted_message = f"{message} | {' | '.join(context_parts)}"
    else:
        formatted_message = message

    # Format: "message | context | RequestID: <uuid>"
    if request_id:
        formatted_message = f"{formatted_message} | RequestID: {request_id}"

    return formatted_message
