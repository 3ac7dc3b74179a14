"""TSIG-signed dynamic DNS update client (RFC 2136) for BIND/PowerDNS/Knot"""

import logging
from typing import List, Optional

import dns.exception
import dns.query
import dns.rcode
import dns.rdatatype
import dns.tsigkeyring
import dns.update
import dns.zone

from ..errors import ProviderError
from ..merge import Resource
from ..record import DNSRecord
from . import group_records

log = logging.getLogger(__name__)

# Record types read back from zone transfers
MANAGED_TYPES = ('A', 'AAAA', 'CNAME', 'SRV', 'TXT')
# Hostname-valued types whose targets must be absolute in the update message
HOSTNAME_TYPES = ('CNAME', 'SRV')


def rdata_text(rtype: str, address: str) -> str:
    """Presentation format of a target for an update message"""
    if rtype in HOSTNAME_TYPES:
        return address.rstrip('.') + '.'
    if rtype == 'TXT' and not address.startswith('"'):
        return '"' + address.replace('"', '\\"') + '"'
    return address


def target_text(rtype: str, rdata) -> str:
    """Target string of an rdata read from a zone"""
    text = rdata.to_text()
    if rtype in HOSTNAME_TYPES:
        return text.rstrip('.')
    if rtype == 'TXT':
        return ''.join(s.decode() for s in rdata.strings)
    return text


class RFC2136Client:
    """Writes one update message per zone touched by a merged resource"""

    def __init__(self, server: str, zones: List[str], key_name: Optional[str] = None,
                 key_secret: Optional[str] = None, algorithm: str = 'hmac-sha256',
                 default_ttl: int = 300, port: int = 53, timeout: float = 10):
        self.server = server
        self.zones = [z.rstrip('.') for z in zones]
        self.default_ttl = default_ttl
        self.port = port
        self.timeout = timeout
        self.keyring = None
        self.algorithm = algorithm
        if key_name and key_secret:
            self.keyring = dns.tsigkeyring.from_text({key_name: (algorithm, key_secret)})
            log.info(f"Initialized TSIG client with key {key_name}")

    def _find_matching_zone(self, domain: str) -> str:
        """Longest configured zone the domain belongs to"""
        domain_lower = domain.lower().rstrip('.')
        matches = [z for z in self.zones
                   if domain_lower == z.lower() or domain_lower.endswith('.' + z.lower())]
        if not matches:
            raise ProviderError(f"{domain} does not match any configured zones")
        return max(matches, key=len)

    def _new_update(self, zone: str) -> dns.update.UpdateMessage:
        if self.keyring:
            return dns.update.UpdateMessage(zone, keyring=self.keyring, keyalgorithm=self.algorithm)
        return dns.update.UpdateMessage(zone)

    def _send(self, update: dns.update.UpdateMessage, zone: str, action: str):
        try:
            response = dns.query.tcp(update, self.server, timeout=self.timeout, port=self.port)
        except (dns.exception.DNSException, OSError) as e:
            raise ProviderError(f"DNS {action} failed for zone {zone}: {e}") from e
        if response.rcode() != dns.rcode.NOERROR:
            error = dns.rcode.to_text(response.rcode())
            log.error(f"DNS {action} failed for zone {zone}: {error}")
            raise ProviderError(f"DNS {action} failed: {error}")

    def _add_records(self, update: dns.update.UpdateMessage, resource: Resource):
        fqdn = resource.domain.rstrip('.') + '.'
        for record in resource.records:
            ttl = record.ttl if record.ttl is not None else self.default_ttl
            log.info(f"Adding {record.rtype} record: {resource.domain} -> {record.address}")
            update.add(fqdn, ttl, record.rtype, rdata_text(record.rtype, record.address))

    def create(self, resource: Resource):
        zone = self._find_matching_zone(resource.domain)
        update = self._new_update(zone)
        self._add_records(update, resource)
        self._send(update, zone, 'create')

    def update(self, resource: Resource):
        zone = self._find_matching_zone(resource.domain)
        update = self._new_update(zone)
        fqdn = resource.domain.rstrip('.') + '.'
        for rtype in dict.fromkeys(r.rtype for r in resource.records):
            update.delete(fqdn, rtype)
        self._add_records(update, resource)
        self._send(update, zone, 'update')

    def delete(self, name: str):
        zone = self._find_matching_zone(name)
        update = self._new_update(zone)
        log.info(f"Deleting records: {name}")
        update.delete(name.rstrip('.') + '.')
        self._send(update, zone, 'delete')

    def list(self) -> List[DNSRecord]:
        """Current records of every configured zone, read with AXFR"""
        rows = []
        for zone_name in self.zones:
            try:
                xfr = dns.query.xfr(self.server, zone_name, keyring=self.keyring, keyalgorithm=self.algorithm,
                                    port=self.port, timeout=self.timeout, relativize=False)
                zone = dns.zone.from_xfr(xfr, relativize=False)
            except (dns.exception.DNSException, OSError) as e:
                raise ProviderError(f"zone transfer of {zone_name} failed: {e}") from e
            for name, ttl, rdata in zone.iterate_rdatas():
                rtype = dns.rdatatype.to_text(rdata.rdtype)
                if rtype not in MANAGED_TYPES:
                    continue
                rows.append((name.to_text(), rtype, ttl, target_text(rtype, rdata)))
        return group_records(rows)

