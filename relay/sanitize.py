"""Sanitization of externally sourced text.

Forwarded messages, quoted replies and file captions come from third
parties. Before they are embedded in a prompt, any markup the agent would
treat as an instruction (proposal tags, memory tags, role XML, injection
phrases, role prefixes) is neutralized.
"""

import re

_RULES: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"\[PROPOSE_(EDIT|WRITE|APPEND|COMMAND)\]", re.I), "[BLOCKED_TAG]"),
    (re.compile(r"\[/(PROPOSE_(EDIT|WRITE|APPEND|COMMAND))\]", re.I), "[/BLOCKED_TAG]"),
    (re.compile(r"\[(REMEMBER|GOAL|DONE):\s*", re.I), "[BLOCKED_MEMORY_TAG: "),
    (
        re.compile(r"<\s*/?\s*(system|human|assistant|user|tool_use|tool_result)\b[^>]*>", re.I),
        "[BLOCKED_XML]",
    ),
    (
        re.compile(
            r"\b(ignore\s+(all\s+)?previous\s+instructions|you\s+are\s+now"
            r"|disregard\s+(all\s+)?prior|new\s+instructions?\s*:)",
            re.I,
        ),
        "[BLOCKED_INJECTION]",
    ),
    (re.compile(r"^(System|Assistant|Human|User)\s*:", re.I | re.M), "[BLOCKED_ROLE]:"),
)


def sanitize_external(text: str) -> str:
    """Neutralize instruction-like markup in third-party text."""
    for pattern, replacement in _RULES:
        text = pattern.sub(replacement, text)
    return text


def quote_external(text: str, *, limit: int = 1000) -> str:
    """Sanitize and truncate third-party text for quoting in a prompt."""
    return sanitize_external(text[:limit])


def with_reply_context(prompt: str, quoted: str, *, limit: int = 1000) -> str:
    """Prefix ``prompt`` with the message the user is replying to."""
    quote = quote_external(quoted, limit=limit)
    return (
        f'[The user is replying to this specific message you sent: "{quote}"]'
        f"\n\nTheir reply: {prompt}"
    )


def with_forward_context(text: str, sender: str) -> str:
    """Wrap forwarded third-party text with its origin."""
    return f"[Forwarded message from {sanitize_external(sender)}]:\n{sanitize_external(text)}"
