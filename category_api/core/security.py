"""
Security utilities - never log or return secrets.
"""

import re
from typing import Any, Dict

SENSITIVE_KEYS = (
    'api_token',
    'backend_token',
    'authorization',
    'password',
    'secret',
    'token',
    'api_key',
)


def sanitize_dict_for_logging(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Remove sensitive fields from dict for logging.

    Args:
        data: Dictionary that may contain secrets.

    Returns:
        Sanitized copy with secrets replaced (nested dicts and lists included).
    """
    result = data.copy()
    for key in list(result.keys()):
        if isinstance(key, str) and key.lower() in SENSITIVE_KEYS:
            result[key] = '***REDACTED***'

    for k, v in result.items():
        if isinstance(v, dict):
            result[k] = sanitize_dict_for_logging(v)
        elif isinstance(v, list):
            result[k] = [
                sanitize_dict_for_logging(item) if isinstance(item, dict) else item
                for item in v
            ]

    return result


def sanitize_string_for_logging(text: str) -> str:
    """
    Remove potential secrets from a string (bearer tokens, redis passwords).

    Args:
        text: String that may contain secrets.

    Returns:
        Sanitized string.
    """
    if not text:
        return text

    patterns = [
        (r'(Bearer\s+)[A-Za-z0-9\-\._~\+\/]+=*', r'\1***'),
        (r'(redis(?:s)?://[^:/@]*:)[^@]+@', r'\1***@'),
    ]

    result = text
    for pattern, replacement in patterns:
        result = re.sub(pattern, replacement, result)

    return result
