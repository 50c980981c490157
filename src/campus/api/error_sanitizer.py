"""
Error Message Sanitization for API Responses.

Controller errors often echo back what they were sent. For WLAN
provisioning that can include the pre-shared key, the operator password
used to log in, bearer tokens, or internal addresses. Everything that
leaves the HTTP API as an error detail goes through this module first.

The original, unsanitized error is still logged server-side.

Usage:
    from fastapi import HTTPException
    from campus.api.error_sanitizer import sanitize_error_message

    try:
        response = await use_case.create_wlan_with_auto_assignment(request)
    except APIError as e:
        logger.error(f"Service creation failed: {e}")
        raise HTTPException(
            status_code=502,
            detail=sanitize_error_message(str(e), "Controller error"),
        )

What Gets Sanitized:
    - Passphrases / PSKs: passphrase=hunter22 -> passphrase=[REDACTED]
    - Credentials: password=..., secret=..., api_key=...
    - Bearer tokens and JWTs
    - Environment variable names such as CAMPUS_PASSWORD
    - Local file paths and Python stack traces
    - IPv4 and MAC addresses
    - Long base64 / hex strings that look like secrets
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional


@dataclass
class SanitizationResult:
    """Result of error message sanitization.

    Attributes:
        sanitized_message: Sanitized error message (safe to return to client)
        redaction_count: Number of redactions made
        original_length: Length of original message
        sanitized_length: Length of sanitized message
    """

    sanitized_message: str
    redaction_count: int
    original_length: int
    sanitized_length: int

    @property
    def was_sanitized(self) -> bool:
        return self.redaction_count > 0


class ErrorSanitizer:
    """Sanitizer for error messages in API responses.

    Example:
        sanitizer = ErrorSanitizer()
        result = sanitizer.sanitize('{"ssid": "corp", "passphrase": "s3cret!"}')
        # result.sanitized_message == '{"ssid": "corp", "passphrase": "[REDACTED]"}'

    Attributes:
        patterns: List of (regex_pattern, replacement) tuples
        max_message_length: Maximum length of sanitized messages
    """

    # Order matters - more specific patterns come first
    DEFAULT_PATTERNS: list[tuple[str, str]] = [
        # WLAN keys, including JSON echoes of a service payload
        (r'"(passphrase|psk|presharedkey|preSharedKey|password)"\s*:\s*"[^"]*"', r'"\1": "[REDACTED]"'),
        (r'(?<![\w"])(passphrase|psk|pre[-_]?shared[-_]?key)\s*[=:]\s*[^\s\n,;]+', r'\1=[REDACTED]'),

        # Authentication tokens and keys
        (r'bearer\s+[A-Za-z0-9_\-\.]+', 'Bearer [REDACTED]'),
        (r'authorization[:\s]+[^\s\n]+', 'Authorization: [REDACTED]'),
        (r'api[-_]?key[=:\s]+[^\s\n,;]+', 'api_key=[REDACTED]'),
        (r'access[-_]?token[=:\s]+[^\s\n,;]+', 'access_token=[REDACTED]'),
        (r'refresh[-_]?token[=:\s]+[^\s\n,;]+', 'refresh_token=[REDACTED]'),

        # Passwords and secrets
        (r'(?<!")password[=:\s]+[^\s\n,;]+', 'password=[REDACTED]'),
        (r'passwd[=:\s]+[^\s\n,;]+', 'passwd=[REDACTED]'),
        (r'secret[=:\s]+[^\s\n,;]+', 'secret=[REDACTED]'),
        (r'private[-_]?key[=:\s]+[^\s\n,;]+', 'private_key=[REDACTED]'),

        # Environment variable names used by this service
        (r'\b(CAMPUS_USERNAME|CAMPUS_PASSWORD|CAMPUS_TOKEN_URL|CAMPUS_BASE_URL)\b', '[ENV_VAR]'),
        (r'\bAPI_KEY\b(?=[=:\s])', '[ENV_VAR]'),

        # File paths (Unix and Windows)
        (r'/(?:home|root|usr|var|etc|opt|mnt)/[^\s\n,;]+', '[FILE_PATH]'),
        (r'[A-Z]:\\[^\s\n,;]+', '[FILE_PATH]'),

        # Stack traces (Python)
        (r'Traceback \(most recent call last\):[\s\S]*?(?=\n\n|\n[A-Z]|\Z)', '[STACK_TRACE]'),
        (r'File "([^"]+)", line \d+', 'File "[REDACTED]", line [REDACTED]'),

        # IP addresses (v4)
        (r'\b(?:(?:25[0-5]|2[0-4][0-9]|[01]?[0-9][0-9]?)\.){3}(?:25[0-5]|2[0-4][0-9]|[01]?[0-9][0-9]?)\b', '[IP_ADDRESS]'),

        # MAC addresses
        (r'\b([0-9A-Fa-f]{2}[:-]){5}([0-9A-Fa-f]{2})\b', '[MAC_ADDRESS]'),

        # JWT tokens
        (r'\beyJ[A-Za-z0-9_-]*\.eyJ[A-Za-z0-9_-]*\.[A-Za-z0-9_-]+\b', '[JWT_REDACTED]'),

        # Long base64 / hex strings (likely tokens)
        (r'\b[A-Za-z0-9+/]{40,}={0,2}', '[BASE64_REDACTED]'),
        (r'\b[0-9a-fA-F]{32,}\b', '[HEX_STRING]'),
    ]

    def __init__(
        self,
        patterns: Optional[list[tuple[str, str]]] = None,
        max_message_length: int = 500,
    ):
        self.patterns = list(patterns or self.DEFAULT_PATTERNS)
        self.max_message_length = max_message_length
        self._compiled_patterns = [
            (re.compile(pattern, re.IGNORECASE), replacement)
            for pattern, replacement in self.patterns
        ]

    def sanitize(self, message: str, error_type: Optional[str] = None) -> SanitizationResult:
        """Sanitize error message for safe client exposure.

        Args:
            message: Raw error message
            error_type: Optional error type/category prefix

        Returns:
            SanitizationResult with sanitized message
        """
        if not message:
            return SanitizationResult(
                sanitized_message="An error occurred",
                redaction_count=0,
                original_length=0,
                sanitized_length=17,
            )

        original_length = len(message)
        sanitized = message
        redaction_count = 0

        for pattern, replacement in self._compiled_patterns:
            sanitized, matches = pattern.subn(replacement, sanitized)
            redaction_count += matches

        if len(sanitized) > self.max_message_length:
            sanitized = sanitized[: self.max_message_length] + "... [TRUNCATED]"

        if not sanitized.strip():
            sanitized = "An error occurred"

        if error_type and not sanitized.startswith(error_type):
            sanitized = f"{error_type}: {sanitized}"

        return SanitizationResult(
            sanitized_message=sanitized,
            redaction_count=redaction_count,
            original_length=original_length,
            sanitized_length=len(sanitized),
        )


_default_sanitizer: Optional[ErrorSanitizer] = None


def get_sanitizer() -> ErrorSanitizer:
    """Get the shared error sanitizer instance."""
    global _default_sanitizer
    if _default_sanitizer is None:
        _default_sanitizer = ErrorSanitizer()
    return _default_sanitizer


def sanitize_error_message(
    message: str,
    error_type: Optional[str] = None,
) -> str:
    """Sanitize an error message with the shared sanitizer.

    Example:
        >>> sanitize_error_message("Missing CAMPUS_PASSWORD", "Configuration error")
        'Configuration error: Missing [ENV_VAR]'
    """
    return get_sanitizer().sanitize(message, error_type).sanitized_message
