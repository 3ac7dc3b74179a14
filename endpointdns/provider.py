"""Applies planned changes to a DNS provider client"""

import logging
from contextlib import contextmanager
from typing import Callable, List, Optional

from .domainfilter import DomainFilter
from .merge import Resource, merge_changes
from .record import Changes, DNSRecord

log = logging.getLogger(__name__)

ApplyHook = Callable[[Changes], None]


class ProviderClient:
    """Write/read capability of a DNS backend; failures raise ProviderError"""

    def list(self) -> List[DNSRecord]:
        raise NotImplementedError

    def create(self, resource: Resource):
        raise NotImplementedError

    def update(self, resource: Resource):
        raise NotImplementedError

    def delete(self, name: str):
        raise NotImplementedError


def log_changes(changes: Changes):
    for record in changes.create:
        log.info(f"CREATE: {record}")
    for record in changes.update_old:
        log.info(f"UPDATE (old): {record}")
    for record in changes.update_new:
        log.info(f"UPDATE (new): {record}")
    for record in changes.delete:
        log.info(f"DELETE: {record}")


class Provider:
    """
    Drives a ProviderClient through a batch of changes

    Order is fixed: creates, deletes, new side of updates, old side of
    updates, with one client write per merged name in every step. The
    first failing call stops the batch and is re-raised; writes already
    made stay in place. Records outside the domain filter are neither
    listed nor written. The on_apply_changes hook always sees the full
    batch, whatever the outcome.
    """

    def __init__(self, client: ProviderClient, dry_run: bool = False,
                 on_apply_changes: Optional[ApplyHook] = None, domain_filter: Optional[DomainFilter] = None):
        self.client = client
        self.dry_run = dry_run
        self.on_apply_changes = on_apply_changes or (lambda changes: None)
        self.domain_filter = domain_filter or DomainFilter()

    @classmethod
    def with_logging(cls, client: ProviderClient, dry_run: bool = False,
                     domain_filter: Optional[DomainFilter] = None) -> 'Provider':
        return cls(client, dry_run, on_apply_changes=log_changes, domain_filter=domain_filter)

    def records(self) -> List[DNSRecord]:
        return self.domain_filter.filter(self.client.list())

    @contextmanager
    def _observed(self, changes: Changes):
        try:
            yield
        finally:
            self.on_apply_changes(changes)

    def apply_changes(self, changes: Changes):
        with self._observed(changes):
            if self.dry_run:
                log.info("Dry run: not applying changes")
                return

            changes = self.domain_filter.filter_changes(changes)
            for resource in merge_changes(changes.create):
                self.client.create(resource)

            for resource in merge_changes(changes.delete):
                self.client.delete(resource.domain)

            for resource in merge_changes(changes.update_new):
                self.client.update(resource)

            for resource in merge_changes(changes.update_old):
                self.client.update(resource)
