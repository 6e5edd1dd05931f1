"""
Structured JSON logging for the agent.

Diagnostics go to stderr (and optionally a file) as one JSON object per line,
so they never mix with the human-facing console output on stdout.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Optional

ROOT_LOGGER = 'mesh_agent'
PLAIN_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class JSONFormatter(logging.Formatter):
    """
    Formats log records as single-line JSON.

    Output format:
    {
        "timestamp": "2026-10-17T09:30:00.123456Z",
        "level": "INFO",
        "logger": "mesh_agent.connection",
        "message": "Connected to collector",
        "context": {...}  # Optional extra fields
    }
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            'timestamp': datetime.now(timezone.utc).strftime('%Y-%m-%dT%H:%M:%S.%fZ'),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }

        # From logger.info(..., extra={'context': {...}})
        context = getattr(record, 'context', None)
        if context:
            log_data['context'] = context

        if record.exc_info:
            log_data['exception'] = {
                'type': record.exc_info[0].__name__,
                'message': str(record.exc_info[1]),
                'traceback': self.formatException(record.exc_info)
            }

        if record.levelno <= logging.DEBUG:
            log_data['source'] = {
                'file': record.pathname,
                'line': record.lineno,
                'function': record.funcName
            }

        return json.dumps(log_data, default=str)


class SessionFilter(logging.Filter):
    """Stamps the agent session id into every record's context"""

    def __init__(self, node_id: str):
        super().__init__()
        self.node_id = node_id

    def filter(self, record: logging.LogRecord) -> bool:
        context = dict(getattr(record, 'context', None) or {})
        context.setdefault('node_id', self.node_id)
        record.context = context
        return True


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[str] = None,
    use_json: bool = True,
    node_id: Optional[str] = None
) -> logging.Logger:
    """
    Configure the agent's logger hierarchy.

    Calling it again replaces the handlers installed by a previous call.

    Args:
        level: Logging level (default: INFO)
        log_file: Optional file path for an additional file handler
        use_json: Use JSON formatter (default: True)
        node_id: Session id stamped into every record

    Returns:
        The configured "mesh_agent" logger
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = JSONFormatter() if use_json else logging.Formatter(PLAIN_FORMAT)

    # StreamHandler defaults to stderr
    handlers = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        if node_id:
            handler.addFilter(SessionFilter(node_id))
        logger.addHandler(handler)

    return logger
