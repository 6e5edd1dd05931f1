"""
mesh_agent: host telemetry agent

Samples local resource utilization, classifies the host into a capability
tier, and streams snapshots to a collector over one websocket connection.
"""

__version__ = '0.1.0'

from mesh_agent.tier import Tier, classify
from mesh_agent.snapshot import NodeInfo, SnapshotBuilder
from mesh_agent.connection import ConnectionLifecycle
from mesh_agent.agent import MeshAgent

__all__ = ['Tier', 'classify', 'NodeInfo', 'SnapshotBuilder', 'ConnectionLifecycle', 'MeshAgent']
