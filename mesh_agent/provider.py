"""
Raw host counters read through psutil.

Every call to MetricsProvider.sample() reads the operating system afresh;
nothing is cached between samples.
"""

import platform
import socket
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

import psutil

from mesh_agent.errors import MetricsFailure

CPUINFO_PATH = Path('/proc/cpuinfo')
OS_RELEASE_PATH = Path('/etc/os-release')

# Any routable address works; connecting a UDP socket sends nothing
ROUTE_PROBE_ADDRESS = ('10.254.254.254', 1)


@dataclass(frozen=True)
class VolumeUsage:
    """Capacity of one mounted volume, in bytes"""
    mountpoint: str
    total: int
    available: int


@dataclass(frozen=True)
class InterfaceCounters:
    """Cumulative byte counters of one network interface"""
    name: str
    rx: int
    tx: int


@dataclass(frozen=True)
class RawSample:
    """Unprocessed counters from one sampling instant"""
    cpu_percents: List[float]
    memory_total: int
    memory_used: int
    cpu_model: Optional[str] = None
    volumes: List[VolumeUsage] = field(default_factory=list)
    interfaces: List[InterfaceCounters] = field(default_factory=list)
    hostname: Optional[str] = None
    os_name: Optional[str] = None
    arch: Optional[str] = None
    local_ip: Optional[str] = None


class MetricsProvider:
    """Collects host counters using psutil and the platform module"""

    def __init__(self, cpu_sample_seconds: float = 0.1):
        self.cpu_sample_seconds = cpu_sample_seconds

    def sample(self) -> RawSample:
        """Read all counters; raises MetricsFailure if CPU or memory is unreadable"""
        try:
            cpu_percents = psutil.cpu_percent(interval=self.cpu_sample_seconds, percpu=True)
            mem = psutil.virtual_memory()
        except (psutil.Error, OSError) as e:
            raise MetricsFailure(f"Cannot read CPU or memory counters: {e}") from e

        return RawSample(
            cpu_percents=list(cpu_percents),
            memory_total=mem.total,
            memory_used=mem.total - mem.available,
            cpu_model=cpu_model(),
            volumes=mounted_volumes(),
            interfaces=interface_counters(),
            hostname=hostname(),
            os_name=os_name(),
            arch=platform.machine() or None,
            local_ip=local_ip(),
        )


def cpu_model() -> Optional[str]:
    """Brand string of the first CPU"""
    try:
        with CPUINFO_PATH.open() as f:
            for line in f:
                key, _, value = line.partition(':')
                if key.strip() == 'model name' and value.strip():
                    return value.strip()
    except OSError:
        pass

    return platform.processor() or None


def mounted_volumes() -> List[VolumeUsage]:
    """Usage of every physical mounted volume, one entry per device"""
    volumes = []
    seen_devices = set()

    for partition in psutil.disk_partitions(all=False):
        if partition.device in seen_devices:
            continue
        try:
            usage = psutil.disk_usage(partition.mountpoint)
        except OSError:
            # Unready drives and restricted mounts
            continue

        seen_devices.add(partition.device)
        volumes.append(VolumeUsage(
            mountpoint=partition.mountpoint,
            total=usage.total,
            available=usage.free
        ))

    return volumes


def interface_counters() -> List[InterfaceCounters]:
    """Bytes received and sent by every interface since boot"""
    counters = psutil.net_io_counters(pernic=True)
    return [
        InterfaceCounters(name=name, rx=nic.bytes_recv, tx=nic.bytes_sent)
        for name, nic in sorted(counters.items())
    ]


def hostname() -> Optional[str]:
    try:
        return socket.gethostname() or None
    except OSError:
        return None


def os_name() -> Optional[str]:
    """Distribution name on Linux, otherwise the platform system name"""
    try:
        with OS_RELEASE_PATH.open() as f:
            for line in f:
                key, _, value = line.strip().partition('=')
                if key == 'NAME' and value:
                    return value.strip('"\'')
    except OSError:
        pass

    return platform.system() or None


def local_ip() -> Optional[str]:
    """Address of the interface that carries the default route"""
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        sock.connect(ROUTE_PROBE_ADDRESS)
        address = sock.getsockname()[0]
    except OSError:
        return None
    finally:
        sock.close()

    if address.startswith('0.'):
        return None
    return address
