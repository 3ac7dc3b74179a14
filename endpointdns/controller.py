"""Reconciliation loop"""

import logging
import threading
from typing import Optional

from .domainfilter import DomainFilter
from .errors import EndpointDNSError
from .plan import Plan, Policy
from .sources.base import Source

log = logging.getLogger(__name__)


class Controller:
    """Lists sources, diffs against the registry and applies the changes"""

    def __init__(self, source: Source, registry, policy: Policy, interval: float = 60,
                 domain_filter: Optional[DomainFilter] = None):
        self.source = source
        self.registry = registry
        self.policy = policy
        self.interval = interval
        self.domain_filter = domain_filter or DomainFilter()

    def run_once(self):
        """One full pass; any failure aborts the pass before changes are applied"""
        records = self.registry.records()
        endpoints = self.domain_filter.filter(self.source.endpoints())
        log.debug(f"Desired endpoints: {len(endpoints)}, current records: {len(records)}")

        changes = Plan(records, endpoints, [self.policy]).calculate()
        if not changes.has_changes():
            log.debug("All records are already up to date")
            return
        self.registry.apply_changes(changes)

    def run(self, stop_event: Optional[threading.Event] = None):
        """Run passes every interval until stop_event is set"""
        stop_event = stop_event or threading.Event()
        log.info(f"Starting endpointdns (polling every {self.interval}s)")

        while not stop_event.is_set():
            try:
                self.run_once()
            except EndpointDNSError as e:
                log.error(f"Reconciliation failed, retrying in {self.interval}s: {e}")
            stop_event.wait(self.interval)
        log.info("Stopped")
