"""Provider client keeping records in process memory"""

import copy
import logging
from typing import Dict, List

from ..errors import ProviderError
from ..merge import Resource
from ..record import DNSRecord
from . import group_records

log = logging.getLogger(__name__)


class InMemoryClient:
    """Records keyed by DNS name, kept only for the lifetime of the process"""

    def __init__(self):
        self.resources: Dict[str, Resource] = {}

    @staticmethod
    def _key(name: str) -> str:
        return name.rstrip('.').lower()

    def list(self) -> List[DNSRecord]:
        return group_records(
            (resource.domain, r.rtype, r.ttl, r.address)
            for resource in self.resources.values() for r in resource.records
        )

    def create(self, resource: Resource):
        key = self._key(resource.domain)
        if key in self.resources:
            self.resources[key].records.extend(copy.deepcopy(resource.records))
        else:
            self.resources[key] = copy.deepcopy(resource)
        log.debug(f"Created {resource}")

    def update(self, resource: Resource):
        """Replace the record types present in resource, leaving other types of the name alone"""
        key = self._key(resource.domain)
        if key not in self.resources:
            raise ProviderError(f"record {resource.domain} does not exist")
        rtypes = {r.rtype for r in resource.records}
        kept = [r for r in self.resources[key].records if r.rtype not in rtypes]
        self.resources[key] = Resource(resource.domain, kept + copy.deepcopy(resource.records))
        log.debug(f"Updated {resource}")

    def delete(self, name: str):
        key = self._key(name)
        if key not in self.resources:
            raise ProviderError(f"record {name} does not exist")
        del self.resources[key]
        log.debug(f"Deleted {name}")
