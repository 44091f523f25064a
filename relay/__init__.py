"""Session relay between a human and an AI agent backend.

Streams partial agent output to a delivery channel in word-safe chunks,
tracks the context budget, serializes requests per session and gates
risky tool invocations behind human approval.
"""

__version__ = "0.1.0"
