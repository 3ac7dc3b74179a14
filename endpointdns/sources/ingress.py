"""Records for Ingress objects"""

from typing import List

from ..record import DNSRecord
from .base import (
    AnnotatedSource, SourceConfig, endpoints_for_hostname, get_targets_from_target_annotation,
    targets_from_load_balancer,
)


class IngressSource(AnnotatedSource):
    """
    Hostnames come from spec.rules[].host and spec.tls[].hosts, targets from
    the load-balancer status. The target annotation overrides the status when
    the ingress controller does not publish one.
    """

    kind = 'ingress'

    def __init__(self, cluster, source_config: SourceConfig):
        super().__init__(source_config)
        self.cluster = cluster

    def list_resources(self) -> list:
        return self.cluster.list_ingresses(self.config.namespace)

    def native_hostnames(self, ing) -> List[str]:
        hostnames = []
        spec = ing.spec
        if spec is None:
            return hostnames
        for rule in spec.rules or []:
            if rule.host:
                hostnames.append(rule.host)
        for tls in spec.tls or []:
            for host in tls.hosts or []:
                if host:
                    hostnames.append(host)
        return hostnames

    def targets(self, ing) -> List[str]:
        targets = get_targets_from_target_annotation(ing.metadata.annotations)
        if not targets:
            targets = targets_from_load_balancer(ing.status)
        return targets

    def endpoints_for_hostnames(self, ing, hostnames: List[str]) -> List[DNSRecord]:
        ttl = self.ttl(ing)
        targets = self.targets(ing)
        records = []
        for hostname in hostnames:
            records.extend(endpoints_for_hostname(hostname, targets, ttl))
        return records
