"""
Telemetry records and the builder that derives them from raw counters.
"""

from dataclasses import asdict, dataclass
from typing import Any, Dict

from mesh_agent.provider import MetricsProvider, RawSample
from mesh_agent.tier import Tier, classify

BYTES_PER_GB = 1024 ** 3
NAME_HOSTNAME_CHARS = 8
UNKNOWN = 'unknown'
LOOPBACK_IP = '127.0.0.1'
REGION = 'local'


@dataclass(frozen=True)
class CpuStats:
    cores: int
    usage: float
    model: str


@dataclass(frozen=True)
class MemoryStats:
    total: int
    used: int
    usage: float


@dataclass(frozen=True)
class StorageStats:
    """Aggregate over all mounted volumes"""
    total: int
    used: int
    usage: float


@dataclass(frozen=True)
class NetworkStats:
    """Cumulative counters summed over all interfaces, not rates"""
    rx: int
    tx: int


@dataclass(frozen=True)
class Specs:
    cpu: CpuStats
    memory: MemoryStats
    storage: StorageStats
    network: NetworkStats


@dataclass(frozen=True)
class Location:
    region: str
    ip: str


@dataclass(frozen=True)
class Platform:
    os: str
    arch: str
    hostname: str


@dataclass(frozen=True)
class NodeInfo:
    """One immutable telemetry snapshot of the host"""
    id: str
    name: str
    tier: Tier
    specs: Specs
    location: Location
    platform: Platform

    def to_dict(self) -> Dict[str, Any]:
        """Wire layout; the tier is published under the "type" key"""
        return {
            'id': self.id,
            'name': self.name,
            'type': self.tier.value,
            'specs': asdict(self.specs),
            'location': asdict(self.location),
            'platform': asdict(self.platform),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'NodeInfo':
        specs = data['specs']
        return cls(
            id=data['id'],
            name=data['name'],
            tier=Tier(data['type']),
            specs=Specs(
                cpu=CpuStats(**specs['cpu']),
                memory=MemoryStats(**specs['memory']),
                storage=StorageStats(**specs['storage']),
                network=NetworkStats(**specs['network']),
            ),
            location=Location(**data['location']),
            platform=Platform(**data['platform']),
        )


def mean_usage(percents) -> float:
    """Arithmetic mean of per-core readings; 0.0 when no cores are reported"""
    if not percents:
        return 0.0
    return sum(percents) / len(percents)


def percent(part: int, whole: int) -> float:
    """part/whole as a percentage; 0.0 when whole is 0"""
    if whole <= 0:
        return 0.0
    return part / whole * 100


def display_name(tier: Tier, hostname: str) -> str:
    return f"{tier.value}-{hostname[:NAME_HOSTNAME_CHARS]}"


class SnapshotBuilder:
    """Turns provider samples into NodeInfo records for one agent session"""

    def __init__(self, node_id: str, provider=None):
        self.node_id = node_id
        self.provider = provider or MetricsProvider()

    def build(self) -> NodeInfo:
        """Sample the provider and build a new snapshot; provider failures propagate"""
        return self.from_sample(self.provider.sample())

    def from_sample(self, sample: RawSample) -> NodeInfo:
        cores = len(sample.cpu_percents)

        storage_total = sum(v.total for v in sample.volumes)
        storage_used = sum(v.total - v.available for v in sample.volumes)

        host = sample.hostname or UNKNOWN
        tier = classify(cores, sample.memory_total // BYTES_PER_GB)

        return NodeInfo(
            id=self.node_id,
            name=display_name(tier, host),
            tier=tier,
            specs=Specs(
                cpu=CpuStats(
                    cores=cores,
                    usage=mean_usage(sample.cpu_percents),
                    model=sample.cpu_model or 'Unknown'
                ),
                memory=MemoryStats(
                    total=sample.memory_total,
                    used=sample.memory_used,
                    usage=percent(sample.memory_used, sample.memory_total)
                ),
                storage=StorageStats(
                    total=storage_total,
                    used=storage_used,
                    usage=percent(storage_used, storage_total)
                ),
                network=NetworkStats(
                    rx=sum(i.rx for i in sample.interfaces),
                    tx=sum(i.tx for i in sample.interfaces)
                ),
            ),
            location=Location(region=REGION, ip=sample.local_ip or LOOPBACK_IP),
            platform=Platform(
                os=sample.os_name or UNKNOWN,
                arch=sample.arch or UNKNOWN,
                hostname=host
            ),
        )
