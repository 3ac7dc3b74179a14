"""
Configuration read from environment variables at startup

Sources:
    SOURCES: Comma-separated sources - service, ingress, gateway (default: service,ingress)
    NAMESPACE: Limit sources to one namespace (default: all namespaces)
    ANNOTATION_FILTER: Label selector over annotations (e.g. kubernetes.io/ingress.class=nginx)
    FQDN_TEMPLATE: Hostname template for resources without a hostname (e.g. {{.Name}}.example.com)
    COMBINE_FQDN_ANNOTATION: Add template hostnames to the annotated ones (default: false)
    COMPATIBILITY: Legacy annotation dialect - mate or molecule (default: none)
    PUBLISH_INTERNAL: Publish the cluster IP of ClusterIP services (default: false)
    PUBLISH_HOST_IP: Publish the host IP of headless service pods (default: false)
    SERVICE_TYPE_FILTER: Comma-separated service types to consider (default: all)
    ISTIO_INGRESS_GATEWAY: namespace/name of the gateway service (default: istio-system/istio-ingressgateway)
    CONTROLLER_NAME: Value of the controller annotation we answer to (default: dns-controller)
    KUBECONFIG: Path to a kubeconfig (default: in-cluster, then ~/.kube/config)

Provider:
    DNS_PROVIDER: shaman, rfc2136 or inmemory
    SHAMAN_HOST / SHAMAN_TOKEN: Shaman API address and token
    DNS_SERVER / DNS_ZONES: RFC 2136 server and comma-separated zones
    TSIG_KEY_NAME / TSIG_KEY_SECRET / TSIG_ALGORITHM: TSIG key (default algorithm: hmac-sha256)
    DNS_TTL: TTL used by RFC 2136 when a record has none (default: 300)
    DOMAIN_FILTER: Comma-separated domains; only names equal to or below them are managed (default: all)

Registry and loop:
    REGISTRY: txt or noop (default: txt)
    TXT_OWNER_ID / TXT_PREFIX: Owner of the records we create (default: default) and TXT name prefix
    POLICY: sync, upsert-only or create-only (default: sync)
    POLL_INTERVAL: Seconds between passes (default: 60)
    ONCE: Run a single pass and exit (default: false)
    DRY_RUN: Log changes instead of applying them (default: false)
    LOG_LEVEL: DEBUG, INFO, WARNING or ERROR (default: INFO)
"""

import os
from dataclasses import dataclass, field, fields
from typing import List, Mapping, Optional

from .errors import ConfigurationError
from .plan import POLICIES
from .sources import SOURCE_NAMES
from .sources.base import COMPATIBILITY_MODES, DEFAULT_CONTROLLER_NAME, SourceConfig

PROVIDERS = ('shaman', 'rfc2136', 'inmemory')
REGISTRIES = ('txt', 'noop')
LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR')
SECRET_FIELDS = ('shaman_token', 'tsig_key_secret')
PASSWORD_MASK = '******'


def _split(value: str) -> List[str]:
    return [v.strip() for v in value.split(',') if v.strip()]


def _bool(value: str) -> bool:
    return value.strip().lower() == 'true'


@dataclass
class Config:
    sources: List[str] = field(default_factory=lambda: ['service', 'ingress'])
    namespace: str = ''
    annotation_filter: str = ''
    fqdn_template: str = ''
    combine_fqdn_annotation: bool = False
    compatibility: str = ''
    publish_internal: bool = False
    publish_host_ip: bool = False
    service_type_filter: List[str] = field(default_factory=list)
    istio_ingress_gateway: str = 'istio-system/istio-ingressgateway'
    controller_name: str = DEFAULT_CONTROLLER_NAME
    kubeconfig: str = ''
    provider: str = ''
    shaman_host: str = 'http://localhost:1632'
    shaman_token: str = 'secret'
    dns_server: str = ''
    dns_zones: List[str] = field(default_factory=list)
    tsig_key_name: str = ''
    tsig_key_secret: str = ''
    tsig_algorithm: str = 'hmac-sha256'
    dns_ttl: int = 300
    domain_filter: List[str] = field(default_factory=list)
    registry: str = 'txt'
    txt_owner_id: str = 'default'
    txt_prefix: str = ''
    policy: str = 'sync'
    interval: int = 60
    once: bool = False
    dry_run: bool = False
    log_level: str = 'INFO'

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'Config':
        env = os.environ if environ is None else environ
        try:
            return cls(
                sources=_split(env.get('SOURCES', 'service,ingress')),
                namespace=env.get('NAMESPACE', ''),
                annotation_filter=env.get('ANNOTATION_FILTER', ''),
                fqdn_template=env.get('FQDN_TEMPLATE', ''),
                combine_fqdn_annotation=_bool(env.get('COMBINE_FQDN_ANNOTATION', 'false')),
                compatibility=env.get('COMPATIBILITY', '').lower(),
                publish_internal=_bool(env.get('PUBLISH_INTERNAL', 'false')),
                publish_host_ip=_bool(env.get('PUBLISH_HOST_IP', 'false')),
                service_type_filter=_split(env.get('SERVICE_TYPE_FILTER', '')),
                istio_ingress_gateway=env.get('ISTIO_INGRESS_GATEWAY', 'istio-system/istio-ingressgateway'),
                controller_name=env.get('CONTROLLER_NAME', DEFAULT_CONTROLLER_NAME),
                kubeconfig=env.get('KUBECONFIG', ''),
                provider=env.get('DNS_PROVIDER', '').lower(),
                shaman_host=env.get('SHAMAN_HOST', 'http://localhost:1632'),
                shaman_token=env.get('SHAMAN_TOKEN', 'secret'),
                dns_server=env.get('DNS_SERVER', ''),
                dns_zones=_split(env.get('DNS_ZONES', '')),
                tsig_key_name=env.get('TSIG_KEY_NAME', ''),
                tsig_key_secret=env.get('TSIG_KEY_SECRET', ''),
                tsig_algorithm=env.get('TSIG_ALGORITHM', 'hmac-sha256'),
                dns_ttl=int(env.get('DNS_TTL', '300')),
                domain_filter=_split(env.get('DOMAIN_FILTER', '')),
                registry=env.get('REGISTRY', 'txt').lower(),
                txt_owner_id=env.get('TXT_OWNER_ID', 'default'),
                txt_prefix=env.get('TXT_PREFIX', ''),
                policy=env.get('POLICY', 'sync').lower(),
                interval=int(env.get('POLL_INTERVAL', '60')),
                once=_bool(env.get('ONCE', 'false')),
                dry_run=_bool(env.get('DRY_RUN', 'false')),
                log_level=env.get('LOG_LEVEL', 'INFO').upper(),
            )
        except ValueError as e:
            raise ConfigurationError(f"invalid numeric setting: {e}") from e

    def validate(self):
        if not self.sources:
            raise ConfigurationError("SOURCES must name at least one source")
        for name in self.sources:
            if name not in SOURCE_NAMES:
                raise ConfigurationError(f"unknown source {name!r}, expected one of {', '.join(SOURCE_NAMES)}")
        if self.compatibility not in COMPATIBILITY_MODES:
            raise ConfigurationError("COMPATIBILITY must be 'mate' or 'molecule'")
        if self.provider not in PROVIDERS:
            raise ConfigurationError(f"DNS_PROVIDER must be one of {', '.join(PROVIDERS)}")
        if self.provider == 'rfc2136':
            if not self.dns_server or not self.dns_zones:
                raise ConfigurationError("DNS_SERVER and DNS_ZONES are required for rfc2136")
            if bool(self.tsig_key_name) != bool(self.tsig_key_secret):
                raise ConfigurationError("TSIG_KEY_NAME and TSIG_KEY_SECRET must be set together")
        if self.registry not in REGISTRIES:
            raise ConfigurationError(f"REGISTRY must be one of {', '.join(REGISTRIES)}")
        if self.policy not in POLICIES:
            raise ConfigurationError(f"POLICY must be one of {', '.join(POLICIES)}")
        if self.interval <= 0:
            raise ConfigurationError("POLL_INTERVAL must be positive")
        if self.log_level not in LOG_LEVELS:
            raise ConfigurationError(f"LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}")

    def source_config(self) -> SourceConfig:
        return SourceConfig(
            namespace=self.namespace,
            annotation_filter=self.annotation_filter,
            fqdn_template=self.fqdn_template,
            combine_fqdn_annotation=self.combine_fqdn_annotation,
            compatibility=self.compatibility,
            publish_internal=self.publish_internal,
            publish_host_ip=self.publish_host_ip,
            service_type_filter=tuple(self.service_type_filter),
            istio_ingress_gateway=self.istio_ingress_gateway,
            controller_name=self.controller_name,
        )

    def __str__(self) -> str:
        # secrets never reach the logs
        values = []
        for f in fields(self):
            value = getattr(self, f.name)
            if f.name in SECRET_FIELDS and value:
                value = PASSWORD_MASK
            values.append(f'{f.name}={value!r}')
        return 'Config(' + ', '.join(values) + ')'
