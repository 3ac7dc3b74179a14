"""Records for Service objects"""

import logging
from typing import List, Optional

from ..errors import ForbiddenError
from ..record import RECORD_TYPE_A, RECORD_TYPE_SRV, DNSRecord
from .base import (
    AnnotatedSource, SourceConfig, endpoints_for_hostname, get_targets_from_target_annotation,
    targets_from_load_balancer,
)
from .legacy import legacy_endpoints_from_service

log = logging.getLogger(__name__)

SERVICE_TYPE_LOAD_BALANCER = 'LoadBalancer'
SERVICE_TYPE_CLUSTER_IP = 'ClusterIP'
SERVICE_TYPE_NODE_PORT = 'NodePort'
CLUSTER_IP_NONE = 'None'
POD_RUNNING = 'Running'

# Fixed priority and weight of synthesized NodePort SRV records
SRV_PRIORITY = 0
SRV_WEIGHT = 50


def service_type(svc) -> str:
    return (svc.spec.type if svc.spec else None) or SERVICE_TYPE_CLUSTER_IP


def extract_service_ips(svc) -> List[str]:
    if svc.spec.cluster_ip == CLUSTER_IP_NONE:
        log.debug(f"Unable to associate headless service {svc.metadata.name} with a cluster IP")
        return []
    if not svc.spec.cluster_ip:
        return []
    return [svc.spec.cluster_ip]


class ServiceSource(AnnotatedSource):
    """
    Finds services under our jurisdiction and returns records for their entrypoints

    LoadBalancer services publish their load-balancer addresses, ClusterIP
    services their cluster IP (when publish_internal is set) or, when headless,
    one record per running pod. NodePort services publish the node addresses
    plus one SRV record per node port.
    """

    kind = 'service'

    def __init__(self, cluster, source_config: SourceConfig):
        super().__init__(source_config)
        self.cluster = cluster
        self.service_types = set(source_config.service_type_filter)
        self._node_targets: List[str] = []

    def list_resources(self) -> list:
        services = self.cluster.list_services(self.config.namespace)
        if self.service_types:
            services = [s for s in services if service_type(s) in self.service_types]
        return services

    def prepare(self, services: list):
        # node addresses are listed once per run, and only when needed
        self._node_targets = []
        if any(service_type(s) == SERVICE_TYPE_NODE_PORT for s in services):
            self._node_targets = self.extract_node_targets()

    def legacy_endpoints(self, svc) -> List[DNSRecord]:
        return legacy_endpoints_from_service(svc, self.config.compatibility)

    def endpoints_for_hostnames(self, svc, hostnames: List[str]) -> List[DNSRecord]:
        ttl = self.ttl(svc)
        records = []
        for hostname in hostnames:
            records.extend(self.generate_endpoints(svc, hostname, ttl))
        return records

    def generate_endpoints(self, svc, hostname: str, ttl: Optional[int]) -> List[DNSRecord]:
        hostname = hostname.rstrip('.')
        records = []
        targets = []

        svc_type = service_type(svc)
        if svc_type == SERVICE_TYPE_LOAD_BALANCER:
            targets = targets_from_load_balancer(svc.status)
        elif svc_type == SERVICE_TYPE_CLUSTER_IP:
            if self.config.publish_internal:
                targets = extract_service_ips(svc)
            if svc.spec.cluster_ip == CLUSTER_IP_NONE:
                records.extend(self.extract_headless_endpoints(svc, hostname, ttl))
        elif svc_type == SERVICE_TYPE_NODE_PORT:
            targets = list(self._node_targets)
            if self._node_targets:
                records.extend(self.extract_node_port_endpoints(svc, hostname, ttl))

        override = get_targets_from_target_annotation(svc.metadata.annotations)
        if override:
            targets = override

        records.extend(endpoints_for_hostname(hostname, targets, ttl))
        return records

    def extract_headless_endpoints(self, svc, hostname: str, ttl: Optional[int]) -> List[DNSRecord]:
        selector = svc.spec.selector or {}
        if not selector:
            log.debug(f"Headless service {svc.metadata.namespace}/{svc.metadata.name} has no selector, skipping pods")
            return []
        label_selector = ','.join(f'{k}={v}' for k, v in sorted(selector.items()))
        pods = self.cluster.list_pods(svc.metadata.namespace, label_selector)

        records = []
        for pod in pods:
            pod_hostname = pod.spec.hostname if pod.spec else None
            headless_domain = f'{pod_hostname}.{hostname}' if pod_hostname else hostname

            phase = pod.status.phase if pod.status else None
            if phase != POD_RUNNING:
                log.debug(f"Pod {pod.metadata.name} is not in running phase")
                continue

            if self.config.publish_host_ip:
                address = pod.status.host_ip
                log.debug(f"Generating matching endpoint {headless_domain} with HostIP {address}")
            else:
                address = pod.status.pod_ip
                log.debug(f"Generating matching endpoint {headless_domain} with PodIP {address}")
            if not address:
                continue
            records.append(DNSRecord(headless_domain, RECORD_TYPE_A, [address], ttl))
        return records

    def extract_node_targets(self) -> List[str]:
        """External node addresses, or internal ones when no node has an external address"""
        try:
            nodes = self.cluster.list_nodes()
        except ForbiddenError:
            log.debug("Unable to list nodes (Forbidden), returning empty list of targets "
                      "(NodePort services will be skipped)")
            return []

        internal_ips = []
        external_ips = []
        for node in nodes:
            addresses = (node.status.addresses if node.status else None) or []
            for address in addresses:
                if address.type == 'ExternalIP':
                    external_ips.append(address.address)
                elif address.type == 'InternalIP':
                    internal_ips.append(address.address)

        if external_ips:
            return external_ips
        return internal_ips

    def extract_node_port_endpoints(self, svc, hostname: str, ttl: Optional[int]) -> List[DNSRecord]:
        records = []
        for port in svc.spec.ports or []:
            if not port.node_port:
                continue
            target = f'{SRV_PRIORITY} {SRV_WEIGHT} {port.node_port} {hostname}'
            port_name = port.name or str(port.node_port)
            protocol = (port.protocol or 'tcp').lower()
            record_name = f'_{port_name}._{protocol}.{hostname}'
            records.append(DNSRecord(record_name, RECORD_TYPE_SRV, [target], ttl))
        return records
