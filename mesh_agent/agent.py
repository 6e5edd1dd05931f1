#!/usr/bin/env python3
"""
Node agent daemon - registers with the collector and streams host metrics.
"""

import asyncio
import sys
import uuid
from datetime import datetime
from typing import Optional

import click

from mesh_agent import __version__
from mesh_agent.config import VALID_LOG_LEVELS, AgentConfig, load_config
from mesh_agent.connection import CloseReason, ConnectionLifecycle
from mesh_agent.errors import ConfigError, ConnectFailure, MetricsFailure, SendFailure
from mesh_agent.frames import EVENT_REGISTER
from mesh_agent.logs import setup_logging
from mesh_agent.scheduler import Scheduler
from mesh_agent.snapshot import BYTES_PER_GB, NodeInfo, SnapshotBuilder

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIG = 2


class MeshAgent:
    """One agent process: a single session against a single collector"""

    def __init__(self, config: AgentConfig, provider=None):
        self.config = config
        # Identifies this session, reused by every frame until the process exits
        self.node_id = str(uuid.uuid4())
        self.builder = SnapshotBuilder(self.node_id, provider)
        self.scheduler = Scheduler(config.interval)
        self.connection = ConnectionLifecycle(
            config.server,
            self.builder,
            self.scheduler,
            on_sent=self._report_sent
        )

    def run(self) -> int:
        """Run until the connection ends; returns the process exit status"""
        click.echo(f"NeuralMesh node agent v{__version__}")
        click.echo(f"Connecting to {self.config.server}")
        if self.config.name:
            click.echo(f"Name override '{self.config.name}' noted; display name is derived from tier and hostname")

        try:
            reason = asyncio.run(self.connection.run())
        except ConnectFailure as e:
            click.echo(click.style(str(e), fg='red'), err=True)
            return EXIT_FAILURE
        except SendFailure as e:
            click.echo(click.style(f"Registration failed: {e}", fg='red'), err=True)
            return EXIT_FAILURE
        except MetricsFailure as e:
            click.echo(click.style(f"Metrics collection failed: {e}", fg='red'), err=True)
            return EXIT_FAILURE
        except KeyboardInterrupt:
            click.echo("\nInterrupted")
            reason = None

        if reason is CloseReason.REMOTE_CLOSED:
            click.echo("Server closed connection")
        click.echo("Agent shutting down")
        return EXIT_OK

    def _report_sent(self, event: str, node: NodeInfo) -> None:
        cpu = node.specs.cpu
        memory = node.specs.memory

        if event == EVENT_REGISTER:
            click.echo(click.style("Registered with server", fg='green'))
            click.echo(f"Node: {node.name} ({node.tier.value})")
            click.echo(f"   CPU: {cpu.cores} cores @ {cpu.usage:.1f}%")
            click.echo(f"   Memory: {memory.total / BYTES_PER_GB:.1f} GB ({memory.usage:.1f}%)")
            return

        click.echo(
            f"[{datetime.now().strftime('%Y-%m-%d %H:%M:%S')}] "
            f"Sent metrics (CPU: {cpu.usage:.1f}% | MEM: {memory.usage:.1f}%)"
        )


@click.command()
@click.option('--server', '-s', envvar='MESH_AGENT_SERVER', default=None,
              help='Collector WebSocket URL (default: ws://localhost:3001)')
@click.option('--name', '-n', default=None, help='Node name (display name is derived if not provided)')
@click.option('--interval', '-i', type=click.IntRange(min=1), default=None,
              help='Update interval in seconds (default: 2)')
@click.option('--config', 'config_path', type=click.Path(exists=True, dir_okay=False), default=None,
              help='Path to a YAML config file with an "agent" section')
@click.option('--log-level', type=click.Choice(VALID_LOG_LEVELS, case_sensitive=False), default=None,
              help='Diagnostic log level (default: INFO)')
@click.option('--log-file', type=click.Path(dir_okay=False), default=None,
              help='Also write diagnostics to this file')
@click.option('--plain-logs', is_flag=True, default=False, help='Plain text diagnostics instead of JSON')
def main(
    server: Optional[str],
    name: Optional[str],
    interval: Optional[int],
    config_path: Optional[str],
    log_level: Optional[str],
    log_file: Optional[str],
    plain_logs: bool
):
    """Collect system metrics and stream them to the collector"""
    try:
        config = load_config(
            config_path,
            server=server,
            name=name,
            interval=interval,
            log_level=log_level,
            log_file=log_file,
            json_logs=False if plain_logs else None
        )
    except ConfigError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(EXIT_CONFIG)

    agent = MeshAgent(config)
    setup_logging(
        level=config.log_level_value,
        log_file=config.log_file,
        use_json=config.json_logs,
        node_id=agent.node_id
    )

    sys.exit(agent.run())


if __name__ == '__main__':
    main()
