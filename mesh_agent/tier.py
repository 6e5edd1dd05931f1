"""
Capability tier classification of a host.
"""

from enum import Enum


class Tier(str, Enum):
    """Coarse capability class, from high-end servers down to IoT devices"""
    ALPHA = 'alpha'
    BETA = 'beta'
    GAMMA = 'gamma'
    DELTA = 'delta'

    def __str__(self) -> str:
        return self.value


def classify(cores: int, memory_gb: int) -> Tier:
    """
    Map core count and whole gigabytes of memory to a tier.

    The first matching rule wins:
        >=16 cores and >=32 GB -> alpha
        >=8 cores and >=16 GB  -> beta
        >=4 cores              -> gamma
        otherwise              -> delta
    """
    if cores >= 16 and memory_gb >= 32:
        return Tier.ALPHA
    if cores >= 8 and memory_gb >= 16:
        return Tier.BETA
    if cores >= 4:
        return Tier.GAMMA
    return Tier.DELTA
