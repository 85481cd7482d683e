"""
Exception types raised by the chat agent.
"""


class ChatAgentError(Exception):
    """Base class for chat agent errors."""


class ProviderError(ChatAgentError):
    """The provider failed while generating the main response of a turn."""

    def __init__(self, model: str, message: str):
        super().__init__(message)
        self.model = model


class InvalidStrategyError(ChatAgentError, ValueError):
    """A strategy payload could not be turned into a strategy configuration."""


class NothingToRetryError(ChatAgentError):
    """Retry was requested but the history has no unanswered user message."""
