"""Rules shared by every source: annotations, filtering, templating, labels"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from ..errors import ConfigurationError
from ..record import (
    RECORD_TYPE_A, RECORD_TYPE_CNAME, RESOURCE_LABEL_KEY, TTL_MAXIMUM, TTL_MINIMUM,
    DNSRecord, merge_records, sort_targets, suitable_type,
)
from ..selector import parse_selector
from ..template import compile_template, template_context

log = logging.getLogger(__name__)

ANNOTATION_PREFIX = 'endpointdns.io/'
CONTROLLER_ANNOTATION_KEY = ANNOTATION_PREFIX + 'controller'
HOSTNAME_ANNOTATION_KEY = ANNOTATION_PREFIX + 'hostname'
TARGET_ANNOTATION_KEY = ANNOTATION_PREFIX + 'target'
TTL_ANNOTATION_KEY = ANNOTATION_PREFIX + 'ttl'

DEFAULT_CONTROLLER_NAME = 'dns-controller'
COMPATIBILITY_MODES = ('', 'mate', 'molecule')


@dataclass(frozen=True)
class SourceConfig:
    """Startup settings shared by the sources"""
    namespace: str = ''
    annotation_filter: str = ''
    fqdn_template: str = ''
    combine_fqdn_annotation: bool = False
    compatibility: str = ''
    publish_internal: bool = False
    publish_host_ip: bool = False
    service_type_filter: Tuple[str, ...] = ()
    istio_ingress_gateway: str = 'istio-system/istio-ingressgateway'
    controller_name: str = DEFAULT_CONTROLLER_NAME


class Source:
    """Anything that produces desired DNS records"""

    def endpoints(self) -> List[DNSRecord]:
        raise NotImplementedError


def split_annotation(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(',') if item.strip()]


def get_hostnames_from_annotations(annotations: Optional[Dict[str, str]]) -> List[str]:
    return split_annotation((annotations or {}).get(HOSTNAME_ANNOTATION_KEY))


def get_targets_from_target_annotation(annotations: Optional[Dict[str, str]]) -> List[str]:
    return split_annotation((annotations or {}).get(TARGET_ANNOTATION_KEY))


def get_ttl_from_annotations(annotations: Optional[Dict[str, str]], resource: str = '') -> Optional[int]:
    """TTL annotation value, or None when absent or invalid"""
    value = (annotations or {}).get(TTL_ANNOTATION_KEY)
    if value is None:
        return None
    try:
        ttl = int(value.strip())
    except ValueError:
        log.warning(f"{resource}: ttl annotation {value!r} is not an integer, ignoring")
        return None
    if ttl < TTL_MINIMUM or ttl > TTL_MAXIMUM:
        log.warning(f"{resource}: ttl {ttl} must be between {TTL_MINIMUM} and {TTL_MAXIMUM}, ignoring")
        return None
    return ttl


def targets_from_load_balancer(status) -> List[str]:
    """IPs and hostnames of a service or ingress load-balancer status"""
    targets = []
    load_balancer = getattr(status, 'load_balancer', None) if status else None
    for lb in (getattr(load_balancer, 'ingress', None) or []):
        if lb.ip:
            targets.append(lb.ip)
        if lb.hostname:
            targets.append(lb.hostname)
    return targets


def endpoints_for_hostname(hostname: str, targets: Sequence[str], ttl: Optional[int]) -> List[DNSRecord]:
    """One A record for IP targets and one CNAME record for the rest"""
    hostname = hostname.rstrip('.')
    a_record = DNSRecord(hostname, RECORD_TYPE_A, ttl=ttl)
    cname_record = DNSRecord(hostname, RECORD_TYPE_CNAME, ttl=ttl)
    for target in targets:
        if suitable_type(target) == RECORD_TYPE_A:
            a_record.targets.append(target)
        else:
            cname_record.targets.append(target)
    return [r for r in (a_record, cname_record) if r.targets]


def merge_resource_records(records: List[DNSRecord]) -> List[DNSRecord]:
    """Collapse records of one resource sharing name and type into one record"""
    return merge_records([r for r in records if r.dns_name and r.targets])


def set_resource_label(records: List[DNSRecord], kind: str, namespace: str, name: str):
    for record in records:
        record.labels[RESOURCE_LABEL_KEY] = f'{kind}/{namespace}/{name}'


class AnnotatedSource(Source):
    """
    Common pipeline for sources built from annotated Kubernetes objects

    Subclasses provide list_resources() plus hostname and target extraction;
    this class applies the controller check, the annotation filter, the
    hostname precedence, the template and the resource label.
    """

    kind = ''

    def __init__(self, source_config: SourceConfig):
        self.config = source_config
        self.selector = parse_selector(source_config.annotation_filter)
        self.template = compile_template(source_config.fqdn_template)
        if source_config.compatibility not in COMPATIBILITY_MODES:
            raise ConfigurationError(f"unknown compatibility mode {source_config.compatibility!r}")

    # Hooks for subclasses

    def list_resources(self) -> list:
        raise NotImplementedError

    def metadata(self, resource):
        return resource.metadata

    def native_hostnames(self, resource) -> List[str]:
        return []

    def legacy_endpoints(self, resource) -> List[DNSRecord]:
        return []

    def endpoints_for_hostnames(self, resource, hostnames: List[str]) -> List[DNSRecord]:
        raise NotImplementedError

    def prepare(self, resources: list):
        """Called once per run with the filtered resources"""

    # Shared pipeline

    def describe(self, resource) -> str:
        meta = self.metadata(resource)
        return f'{self.kind} {meta.namespace}/{meta.name}'

    def is_managed(self, resource) -> bool:
        annotations = self.metadata(resource).annotations or {}
        controller = annotations.get(CONTROLLER_ANNOTATION_KEY)
        if controller is not None and controller != self.config.controller_name:
            log.debug(f"Skipping {self.describe(resource)} because controller value does not match, "
                      f"found: {controller}, required: {self.config.controller_name}")
            return False
        return True

    def filter_by_annotations(self, resources: list) -> list:
        if self.selector.empty():
            return list(resources)
        return [r for r in resources if self.selector.matches(self.metadata(r).annotations)]

    def ttl(self, resource) -> Optional[int]:
        return get_ttl_from_annotations(self.metadata(resource).annotations, self.describe(resource))

    def template_endpoints(self, resource) -> List[DNSRecord]:
        meta = self.metadata(resource)
        context = template_context(self.kind, meta.name, meta.namespace, meta.labels, meta.annotations)
        return self.endpoints_for_hostnames(resource, self.template.hostnames(context))

    def resource_endpoints(self, resource) -> List[DNSRecord]:
        """Records for one resource following the hostname precedence"""
        hostnames = get_hostnames_from_annotations(self.metadata(resource).annotations)
        if not hostnames:
            hostnames = self.native_hostnames(resource)
        records = self.endpoints_for_hostnames(resource, hostnames) if hostnames else []

        if not records and self.config.compatibility:
            records = self.legacy_endpoints(resource)

        if self.template is not None and (self.config.combine_fqdn_annotation or not records):
            template_records = self.template_endpoints(resource)
            if self.config.combine_fqdn_annotation:
                records = records + template_records
            else:
                records = template_records

        return merge_resource_records(records)

    def endpoints(self) -> List[DNSRecord]:
        resources = self.filter_by_annotations(self.list_resources())
        resources = [r for r in resources if self.is_managed(r)]
        self.prepare(resources)

        endpoints = []
        for resource in resources:
            records = self.resource_endpoints(resource)
            if not records:
                log.debug(f"No endpoints could be generated from {self.describe(resource)}")
                continue
            meta = self.metadata(resource)
            for record in records:
                record.targets = sort_targets(record.targets)
            set_resource_label(records, self.kind, meta.namespace, meta.name)
            log.debug(f"Endpoints generated from {self.describe(resource)}: {[str(r) for r in records]}")
            endpoints.extend(records)
        return endpoints
