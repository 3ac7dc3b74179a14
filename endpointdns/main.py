"""Entry point: wire configuration, sources, provider and registry together"""

import logging
import signal
import socket
import sys
import threading

from . import __version__
from .cluster import ClusterClient, load_kube_config
from .clients.inmemory import InMemoryClient
from .clients.rfc2136 import RFC2136Client
from .clients.shaman import ShamanClient
from .config import Config
from .controller import Controller
from .domainfilter import DomainFilter
from .errors import ConfigurationError, EndpointDNSError
from .plan import policy_by_name
from .provider import Provider
from .record import is_ip_address
from .registry import NoopRegistry, TXTRegistry
from .sources import MultiSource, build_sources

log = logging.getLogger(__name__)


def setup_logging(level: str):
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format='%(asctime)s [%(levelname)s] %(message)s'
    )


def build_client(cfg: Config):
    if cfg.provider == 'shaman':
        return ShamanClient(cfg.shaman_host, cfg.shaman_token)
    if cfg.provider == 'rfc2136':
        server = cfg.dns_server
        if not is_ip_address(server):
            try:
                server = socket.gethostbyname(server)
            except OSError as e:
                raise ConfigurationError(f"could not resolve IP for {cfg.dns_server}: {e}") from e
            log.info(f"Resolved DNS server IP: {server}")
        return RFC2136Client(server, cfg.dns_zones, cfg.tsig_key_name, cfg.tsig_key_secret,
                             cfg.tsig_algorithm, default_ttl=cfg.dns_ttl)
    return InMemoryClient()


def build_registry(cfg: Config, provider: Provider):
    if cfg.registry == 'noop':
        return NoopRegistry(provider)
    return TXTRegistry(provider, cfg.txt_prefix, cfg.txt_owner_id)


def build_controller(cfg: Config, cluster) -> Controller:
    sources = build_sources(cfg.sources, cluster, cfg.source_config())
    domain_filter = DomainFilter(cfg.domain_filter)
    provider = Provider.with_logging(build_client(cfg), dry_run=cfg.dry_run, domain_filter=domain_filter)
    return Controller(
        source=MultiSource(sources),
        registry=build_registry(cfg, provider),
        policy=policy_by_name(cfg.policy),
        interval=cfg.interval,
        domain_filter=domain_filter,
    )


def handle_signals(stop_event: threading.Event):
    def stop(signum, frame):
        log.info(f"Received {signal.Signals(signum).name}, terminating...")
        stop_event.set()
    signal.signal(signal.SIGTERM, stop)
    signal.signal(signal.SIGINT, stop)


def main():
    try:
        cfg = Config.from_env()
        cfg.validate()
    except ConfigurationError as e:
        setup_logging('INFO')
        log.error(f"Configuration error: {e}")
        sys.exit(1)

    setup_logging(cfg.log_level)
    log.info(f"endpointdns {__version__}")
    log.info(f"Configuration: {cfg}")
    if cfg.dry_run:
        log.info("Running in dry-run mode. No changes to DNS records will be made.")

    try:
        load_kube_config(cfg.kubeconfig)
        controller = build_controller(cfg, ClusterClient())
    except ConfigurationError as e:
        log.error(f"Configuration error: {e}")
        sys.exit(1)

    if cfg.once:
        try:
            controller.run_once()
        except EndpointDNSError as e:
            log.error(f"Reconciliation failed: {e}")
            sys.exit(1)
        return

    stop_event = threading.Event()
    handle_signals(stop_event)
    controller.run(stop_event)


if __name__ == '__main__':
    main()
