"""
This module is to be used with loguru to remove potentially sensitive information
such as the user's name, browser session cookies and API tokens.
"""

import re

_SESSION_COOKIE_PATTERN = re.compile(r"(sid_develop=)[^;\s\"']+")
_BEARER_PATTERN = re.compile(
    r"\b((?:Bearer|token)\s+)[A-Za-z0-9_\-\.]{16,}", re.IGNORECASE
)


def obfuscate_message(
    message: str, anonymize_path: bool = True, redact_secrets: bool = True
) -> str:
    """
    Obfuscate the message such that it does not reveal user information.

    The message may contain a path, in which case the path will be anonymized,
    and it may contain a session cookie or a bearer token, which are redacted.

    Args:
        message: The message to obfuscate.
        anonymize_path: Whether to anonymize the path in the message.
        redact_secrets: Whether to redact cookies and tokens in the message.

    Returns:
        The obfuscated message.
    """
    if anonymize_path:
        message = _anonymize_path(message)

    if redact_secrets:
        message = _redact_secrets(message)

    return message


def _anonymize_path(message: str) -> str:
    """
    Anonymize the path in the message such that
    it does not reveal user information such as usernames.

    The input message may or may not contain a path at all.

    OS agnostic.
    """
    # Windows - Only remove the username, keep the drive letter
    message = re.sub(r"([A-Z]:\\Users\\)[^\\]+\\", r"\1...\\", message)
    # Linux - Only remove the username
    message = re.sub(r"/home/[^/]+/", r"/home/.../", message)
    # macOS
    message = re.sub(r"/Users/[^/]+/", r"/Users/.../", message)

    return message


def _redact_secrets(message: str) -> str:
    message = _SESSION_COOKIE_PATTERN.sub(r"\1***", message)
    message = _BEARER_PATTERN.sub(r"\1***", message)
    return message
