"""Limits the DNS names the controller manages to a set of domain suffixes"""

from typing import Iterable, List

from .record import Changes, DNSRecord


class DomainFilter:
    """Matches a name equal to or below one of the domains; no domains matches everything"""

    def __init__(self, domains: Iterable[str] = ()):
        self.domains = [d.strip().strip('.').lower() for d in domains if d and d.strip().strip('.')]

    def match(self, name: str) -> bool:
        if not self.domains:
            return True
        name = name.rstrip('.').lower()
        return any(name == d or name.endswith('.' + d) for d in self.domains)

    def filter(self, records: List[DNSRecord]) -> List[DNSRecord]:
        return [r for r in records if self.match(r.dns_name)]

    def filter_changes(self, changes: Changes) -> Changes:
        return Changes(
            create=self.filter(changes.create),
            update_old=self.filter(changes.update_old),
            update_new=self.filter(changes.update_new),
            delete=self.filter(changes.delete),
        )

    def __str__(self) -> str:
        return ','.join(self.domains) or '(all)'
