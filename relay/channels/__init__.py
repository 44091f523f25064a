"""Delivery channels for the relay."""

from relay.channels.console import ApprovalMode, ConsoleApprovalNotifier, ConsoleSink

__all__ = ["ApprovalMode", "ConsoleApprovalNotifier", "ConsoleSink"]
