"""Session module: context budget, request queue, persistence and runtime."""

from relay.session.budget import ContextBudgetTracker, chars_to_tokens
from relay.session.queue import EnqueueOutcome, RequestQueue
from relay.session.runtime import SessionRuntime
from relay.session.store import SessionStore

__all__ = [
    "ContextBudgetTracker",
    "EnqueueOutcome",
    "RequestQueue",
    "SessionRuntime",
    "SessionStore",
    "chars_to_tokens",
]
