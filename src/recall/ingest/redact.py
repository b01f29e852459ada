"""Secret redaction applied to chunk content and summaries before storage."""

from __future__ import annotations

import re

REDACTED = "[REDACTED]"

REDACTION_PATTERNS: tuple[re.Pattern[str], ...] = (
    # Anthropic API keys
    re.compile(r"sk-ant-[a-zA-Z0-9_-]{20,}"),
    # OpenAI API keys
    re.compile(r"sk-[a-zA-Z0-9]{48}"),
    # GitHub tokens
    re.compile(r"gh[pus]_[a-zA-Z0-9]{36}"),
    # AWS access key ids
    re.compile(r"AKIA[0-9A-Z]{16}"),
    # password = "....", token: '....'
    re.compile(r"""(?:password|secret|token|key)\s*[:=]\s*['"][^'"]{8,}['"]""", re.IGNORECASE),
    # API_KEY=value style environment assignments
    re.compile(
        r"(?:API_KEY|SECRET|TOKEN|PASSWORD|PRIVATE_KEY|ACCESS_KEY)\s*=\s*\S+", re.IGNORECASE
    ),
)


def redact_secrets(text: str) -> str:
    """Replace every credential-looking substring of *text* with ``[REDACTED]``."""
    for pattern in REDACTION_PATTERNS:
        text = pattern.sub(REDACTED, text)
    return text
