"""
Error kinds raised by the agent.
"""


class AgentError(Exception):
    """Base class for agent failures"""
    pass


class ConfigError(AgentError):
    """Configuration validation error"""
    pass


class ConnectFailure(AgentError):
    """The collector endpoint could not be reached"""

    def __init__(self, url: str, reason: str):
        super().__init__(f"Failed to connect to {url}: {reason}")
        self.url = url
        self.reason = reason


class SendFailure(AgentError):
    """A frame could not be written to an established connection"""

    def __init__(self, event: str, reason: str):
        super().__init__(f"Failed to send {event}: {reason}")
        self.event = event
        self.reason = reason


class MetricsFailure(AgentError):
    """The metrics provider could not produce a sample"""
    pass
