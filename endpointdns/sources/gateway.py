"""Records for Istio Gateway configs"""

import copy
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from ..errors import ConfigurationError, EndpointDNSError
from ..record import DNSRecord
from .base import (
    AnnotatedSource, SourceConfig, endpoints_for_hostname, get_targets_from_target_annotation,
    targets_from_load_balancer,
)

log = logging.getLogger(__name__)

GATEWAY_TYPE = 'gateway'
ISTIO_GROUP = 'networking.istio.io'
ISTIO_VERSION = 'v1alpha3'
ISTIO_GATEWAY_PLURAL = 'gateways'


class ConfigStoreError(EndpointDNSError):
    """Invalid operation on a gateway config store"""


@dataclass
class GatewayServer:
    hosts: List[str] = field(default_factory=list)


@dataclass
class GatewayConfig:
    """A gateway configuration object and its metadata"""
    name: str
    namespace: str
    servers: List[GatewayServer] = field(default_factory=list)
    annotations: Dict[str, str] = field(default_factory=dict)
    labels: Dict[str, str] = field(default_factory=dict)
    type: str = GATEWAY_TYPE
    resource_version: str = ''

    @classmethod
    def from_object(cls, obj: dict) -> 'GatewayConfig':
        """Build from a custom object as returned by the Kubernetes API"""
        metadata = obj.get('metadata') or {}
        spec = obj.get('spec') or {}
        servers = [GatewayServer(list(s.get('hosts') or [])) for s in spec.get('servers') or []]
        return cls(
            name=metadata.get('name', ''),
            namespace=metadata.get('namespace', ''),
            servers=servers,
            annotations=dict(metadata.get('annotations') or {}),
            labels=dict(metadata.get('labels') or {}),
            resource_version=metadata.get('resourceVersion', ''),
        )


class ConfigStore:
    """Lists gateway configs of a namespace ('' for all namespaces)"""

    def list(self, namespace: str = '') -> List[GatewayConfig]:
        raise NotImplementedError


class InMemoryConfigStore(ConfigStore):
    """Versioned gateway configs keyed by (type, namespace, name)"""

    def __init__(self):
        self._entries: Dict[Tuple[str, str, str], GatewayConfig] = {}

    @staticmethod
    def _key(typ: str, namespace: str, name: str) -> Tuple[str, str, str]:
        return (typ, namespace, name)

    def get(self, typ: str, name: str, namespace: str) -> Optional[GatewayConfig]:
        entry = self._entries.get(self._key(typ, namespace, name))
        return copy.deepcopy(entry) if entry else None

    def list(self, namespace: str = '', typ: str = GATEWAY_TYPE) -> List[GatewayConfig]:
        return [copy.deepcopy(c) for (t, ns, _), c in self._entries.items()
                if t == typ and (not namespace or ns == namespace)]

    def create(self, config: GatewayConfig) -> str:
        key = self._key(config.type, config.namespace, config.name)
        if key in self._entries:
            raise ConfigStoreError(f"config {config.namespace}/{config.name} already exists")
        entry = copy.deepcopy(config)
        entry.resource_version = '0'
        self._entries[key] = entry
        return entry.resource_version

    def update(self, config: GatewayConfig) -> str:
        key = self._key(config.type, config.namespace, config.name)
        old = self._entries.get(key)
        if old is None:
            raise ConfigStoreError(f"config {config.namespace}/{config.name} does not exist")
        try:
            revision = int(old.resource_version)
        except ValueError as e:
            raise ConfigStoreError(f"invalid revision {old.resource_version!r}") from e
        entry = copy.deepcopy(config)
        entry.resource_version = str(revision + 1)
        self._entries[key] = entry
        return entry.resource_version

    def delete(self, typ: str, name: str, namespace: str):
        key = self._key(typ, namespace, name)
        if key not in self._entries:
            raise ConfigStoreError(f"config {namespace}/{name} does not exist")
        del self._entries[key]


class KubernetesConfigStore(ConfigStore):
    """Istio Gateway custom objects read through the cluster client"""

    def __init__(self, cluster):
        self.cluster = cluster

    def list(self, namespace: str = '') -> List[GatewayConfig]:
        objects = self.cluster.list_custom_objects(ISTIO_GROUP, ISTIO_VERSION, ISTIO_GATEWAY_PLURAL, namespace)
        return [GatewayConfig.from_object(o) for o in objects]


def parse_gateway_service(value: str) -> Tuple[str, str]:
    namespace, sep, name = value.partition('/')
    if not sep or not namespace or not name or '/' in name:
        raise ConfigurationError(f"invalid ingress gateway service {value!r}, expected namespace/name")
    return namespace, name


class GatewaySource(AnnotatedSource):
    """
    Hostnames come from the servers of every gateway config in scope; targets
    come from the load-balancer status of one ingress gateway service.
    """

    kind = 'gateway'

    def __init__(self, cluster, store: ConfigStore, source_config: SourceConfig):
        super().__init__(source_config)
        self.cluster = cluster
        self.store = store
        self.gateway_namespace, self.gateway_name = parse_gateway_service(source_config.istio_ingress_gateway)
        self._gateway_targets: List[str] = []

    def metadata(self, config: GatewayConfig) -> GatewayConfig:
        return config

    def list_resources(self) -> list:
        return self.store.list(self.config.namespace)

    def prepare(self, configs: list):
        self._gateway_targets = []
        if configs:
            self._gateway_targets = self.targets_from_gateway_service()

    def targets_from_gateway_service(self) -> List[str]:
        service = self.cluster.read_service(self.gateway_namespace, self.gateway_name)
        return targets_from_load_balancer(service.status)

    def native_hostnames(self, config: GatewayConfig) -> List[str]:
        hostnames = []
        for server in config.servers:
            for host in server.hosts:
                # hosts may be namespace scoped ("ns/host")
                host = host.rpartition('/')[2]
                if not host or host == '*':
                    continue
                hostnames.append(host)
        return hostnames

    def endpoints_for_hostnames(self, config: GatewayConfig, hostnames: List[str]) -> List[DNSRecord]:
        ttl = self.ttl(config)
        targets = get_targets_from_target_annotation(config.annotations)
        if not targets:
            targets = self._gateway_targets
        records = []
        for hostname in hostnames:
            records.extend(endpoints_for_hostname(hostname, targets, ttl))
        return records
