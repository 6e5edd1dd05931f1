"""
JSON text frames exchanged with the collector.

Outbound frames are envelopes of the form {"event": ..., "data": NodeInfo}.
Inbound frames carry no enforced schema; they are parsed best-effort.
"""

import json
from dataclasses import dataclass
from typing import Any, Optional

from mesh_agent.snapshot import NodeInfo

EVENT_REGISTER = 'node:register'
EVENT_METRICS = 'node:metrics'
EVENT_REGISTER_ACK = 'register:success'


@dataclass(frozen=True)
class InboundMessage:
    """A text frame received from the collector"""
    raw: str
    event: Optional[str] = None
    data: Any = None


def encode_frame(event: str, node: NodeInfo) -> str:
    """Serialize one outbound envelope as single-line JSON"""
    return json.dumps({'event': event, 'data': node.to_dict()})


def parse_inbound(text: str) -> InboundMessage:
    """Parse an inbound frame (supports both event envelopes and plain text)"""
    try:
        payload = json.loads(text)
    except (json.JSONDecodeError, ValueError, RecursionError):
        return InboundMessage(raw=text)

    if not isinstance(payload, dict) or not isinstance(payload.get('event'), str):
        return InboundMessage(raw=text)

    return InboundMessage(raw=text, event=payload['event'], data=payload.get('data'))
