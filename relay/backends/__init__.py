"""Agent backend interface and bundled implementations."""

from relay.backends.base import AgentBackend, CanUseTool
from relay.backends.replay import ReplayBackend, load_recording

__all__ = ["AgentBackend", "CanUseTool", "ReplayBackend", "load_recording"]
