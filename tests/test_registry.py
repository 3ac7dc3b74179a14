import pytest

from endpointdns.clients.inmemory import InMemoryClient
from endpointdns.errors import ConfigurationError
from endpointdns.merge import Resource, ResourceRecord
from endpointdns.provider import Provider
from endpointdns.record import Changes, DNSRecord
from endpointdns.registry import NoopRegistry, TXTRegistry, parse_labels, serialize_labels


def rec(name, *targets, rtype='A', **labels):
    return DNSRecord(name, rtype, list(targets), labels=labels)


def seeded_client(*resources):
    client = InMemoryClient()
    for domain, entries in resources:
        client.create(Resource(domain, [ResourceRecord(address, rtype) for rtype, address in entries]))
    return client


class TestLabels:
    def test_serialize(self):
        text = serialize_labels({'resource': 'service/default/web', 'owner': 'default'})
        assert text == 'heritage=endpointdns,endpointdns/owner=default,endpointdns/resource=service/default/web'
        assert parse_labels(text) == {'owner': 'default', 'resource': 'service/default/web'}

    def test_parse_quoted(self):
        assert parse_labels('"heritage=endpointdns,endpointdns/owner=x"') == {'owner': 'x'}

    def test_parse_foreign(self):
        assert parse_labels('v=spf1 -all') is None
        assert parse_labels('heritage=external-dns,external-dns/owner=x') is None


class TestTXTRegistry:
    def test_empty_owner_rejected(self):
        with pytest.raises(ConfigurationError):
            TXTRegistry(Provider(InMemoryClient()), '', '')

    def test_records_hide_ownership(self):
        client = seeded_client(
            ('a.example.org', [('A', '1.1.1.1'), ('TXT', 'heritage=endpointdns,endpointdns/owner=default')]),
            ('b.example.org', [('A', '2.2.2.2'), ('TXT', 'v=spf1 -all')]),
        )
        records = {(r.dns_name, r.record_type): r for r in TXTRegistry(Provider(client), '', 'default').records()}
        assert set(records) == {('a.example.org', 'A'), ('b.example.org', 'A'), ('b.example.org', 'TXT')}
        assert records[('a.example.org', 'A')].labels == {'owner': 'default'}
        assert records[('b.example.org', 'A')].labels == {}

    def test_ownership_found_among_other_txt_values(self):
        client = seeded_client(
            ('x.example.org', [('A', '1.1.1.1'), ('TXT', 'v=spf1 -all'),
                                ('TXT', 'heritage=endpointdns,endpointdns/owner=default')]),
        )
        records = {r.record_type: r for r in TXTRegistry(Provider(client), '', 'default').records()}
        assert set(records) == {'A', 'TXT'}
        assert records['A'].labels == {'owner': 'default'}
        assert records['TXT'].targets == ['v=spf1 -all']
        assert records['TXT'].labels == {}

    def test_prefix(self):
        client = seeded_client(
            ('a.example.org', [('A', '1.1.1.1')]),
            ('own-a.example.org', [('TXT', 'heritage=endpointdns,endpointdns/owner=default')]),
        )
        registry = TXTRegistry(Provider(client), 'own-', 'default')
        records = registry.records()
        assert [(r.dns_name, r.labels) for r in records] == [('a.example.org', {'owner': 'default'})]
        assert registry.txt_name('a.example.org') == 'own-a.example.org'

    def test_create_adds_ownership(self):
        client = InMemoryClient()
        registry = TXTRegistry(Provider(client), '', 'default')
        registry.apply_changes(Changes(create=[rec('a.example.org', '1.1.1.1', resource='service/d/a'),
                                               rec('a.example.org', 'lb.example.com', rtype='CNAME',
                                                   resource='service/d/a')]))
        stored = client.resources['a.example.org']
        assert [(r.rtype, r.address) for r in stored.records] == [
            ('A', '1.1.1.1'),
            ('CNAME', 'lb.example.com'),
            ('TXT', 'heritage=endpointdns,endpointdns/owner=default,endpointdns/resource=service/d/a'),
        ]

    def test_foreign_records_untouched(self):
        client = seeded_client(('a.example.org', [('A', '1.1.1.1')]))
        registry = TXTRegistry(Provider(client), '', 'default')
        current = registry.records()
        registry.apply_changes(Changes(delete=current, update_old=current,
                                       update_new=[rec('a.example.org', '9.9.9.9')]))
        assert [r.address for r in client.resources['a.example.org'].records] == ['1.1.1.1']

    def test_owned_records_deleted(self):
        client = seeded_client(
            ('a.example.org', [('A', '1.1.1.1'), ('TXT', 'heritage=endpointdns,endpointdns/owner=default')]),
        )
        registry = TXTRegistry(Provider(client), '', 'default')
        registry.apply_changes(Changes(delete=registry.records()))
        assert client.resources == {}

    def test_other_owner_not_deleted(self):
        client = seeded_client(
            ('a.example.org', [('A', '1.1.1.1'), ('TXT', 'heritage=endpointdns,endpointdns/owner=other')]),
        )
        registry = TXTRegistry(Provider(client), '', 'default')
        registry.apply_changes(Changes(delete=registry.records()))
        assert 'a.example.org' in client.resources


class TestNoopRegistry:
    def test_passthrough(self):
        client = seeded_client(('a.example.org', [('A', '1.1.1.1')]))
        registry = NoopRegistry(Provider(client))
        registry.apply_changes(Changes(delete=registry.records()))
        assert client.resources == {}
