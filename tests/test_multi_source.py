import pytest

from endpointdns.errors import CollectionError
from endpointdns.record import DNSRecord
from endpointdns.sources import MultiSource, dedup
from endpointdns.sources.base import Source


class StaticSource(Source):
    def __init__(self, records=None, error=None):
        self.records = records or []
        self.error = error

    def endpoints(self):
        if self.error:
            raise self.error
        return [DNSRecord(r.dns_name, r.record_type, list(r.targets), r.ttl, dict(r.labels)) for r in self.records]


class TestMultiSource:
    def test_concatenates_in_source_order(self):
        a = StaticSource([DNSRecord('a.example.org', 'A', ['1.2.3.4'])])
        b = StaticSource([DNSRecord('b.example.org', 'CNAME', ['lb.example.com'])])
        assert [r.dns_name for r in MultiSource([a, b]).endpoints()] == ['a.example.org', 'b.example.org']

    def test_duplicates_across_sources_removed(self):
        """The first occurrence wins, including its labels"""
        a = StaticSource([DNSRecord('a.example.org', 'A', ['1.2.3.5', '1.2.3.4'], labels={'resource': 'service/x/a'})])
        b = StaticSource([DNSRecord('A.example.org', 'A', ['1.2.3.4', '1.2.3.5'], labels={'resource': 'ingress/x/a'})])
        records = MultiSource([a, b]).endpoints()
        assert len(records) == 1
        assert records[0].targets == ['1.2.3.4', '1.2.3.5']
        assert records[0].labels['resource'] == 'service/x/a'

    def test_different_ttl_is_not_a_duplicate(self):
        a = StaticSource([DNSRecord('a.example.org', 'A', ['1.2.3.4'], ttl=60)])
        b = StaticSource([DNSRecord('a.example.org', 'A', ['1.2.3.4'])])
        assert len(MultiSource([a, b]).endpoints()) == 2

    def test_failure_aborts(self):
        a = StaticSource([DNSRecord('a.example.org', 'A', ['1.2.3.4'])])
        with pytest.raises(CollectionError):
            MultiSource([a, StaticSource(error=CollectionError('boom'))]).endpoints()

    def test_no_sources(self):
        assert MultiSource([]).endpoints() == []


class TestDedup:
    def test_sorts_targets(self):
        records = dedup([DNSRecord('a.example.org', 'CNAME', ['z.example.com', 'a.example.com'])])
        assert records[0].targets == ['a.example.com', 'z.example.com']
