"""Sources turn cluster resources into desired DNS records"""

from typing import List, Sequence

from ..errors import ConfigurationError
from .base import Source, SourceConfig
from .gateway import GatewaySource, InMemoryConfigStore, KubernetesConfigStore
from .ingress import IngressSource
from .multi import MultiSource, dedup
from .service import ServiceSource

SOURCE_NAMES = ('service', 'ingress', 'gateway')


def build_source(name: str, cluster, source_config: SourceConfig) -> Source:
    if name == 'service':
        return ServiceSource(cluster, source_config)
    if name == 'ingress':
        return IngressSource(cluster, source_config)
    if name == 'gateway':
        return GatewaySource(cluster, KubernetesConfigStore(cluster), source_config)
    raise ConfigurationError(f"unknown source {name!r}, expected one of {', '.join(SOURCE_NAMES)}")


def build_sources(names: Sequence[str], cluster, source_config: SourceConfig) -> List[Source]:
    return [build_source(name, cluster, source_config) for name in names]


__all__ = [
    'GatewaySource', 'InMemoryConfigStore', 'IngressSource', 'KubernetesConfigStore', 'MultiSource',
    'ServiceSource', 'Source', 'SourceConfig', 'build_source', 'build_sources', 'dedup',
]
