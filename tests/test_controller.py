import threading

import pytest

from endpointdns.clients.inmemory import InMemoryClient
from endpointdns.controller import Controller
from endpointdns.domainfilter import DomainFilter
from endpointdns.errors import CollectionError, ProviderError
from endpointdns.plan import sync_policy, upsert_only_policy
from endpointdns.provider import Provider
from endpointdns.record import DNSRecord
from endpointdns.registry import NoopRegistry, TXTRegistry
from endpointdns.sources import MultiSource, ServiceSource, SourceConfig
from endpointdns.sources.base import HOSTNAME_ANNOTATION_KEY
from tests.fakes import FakeCluster, RecordingClient, service


def controller(cluster, client, policy=sync_policy):
    source = MultiSource([ServiceSource(cluster, SourceConfig())])
    registry = TXTRegistry(Provider(client), '', 'default')
    return Controller(source, registry, policy, interval=0.01)


def stored(client):
    return {name: sorted((r.rtype, r.address) for r in res.records) for name, res in client.resources.items()}


class TestController:
    def test_full_cycle(self):
        """Create, converge, change targets, then remove the service"""
        svc = service(annotations={HOSTNAME_ANNOTATION_KEY: 'foo.example.org'}, ips=['1.2.3.4'])
        cluster = FakeCluster(services=[svc])
        client = InMemoryClient()
        ctl = controller(cluster, client)

        ctl.run_once()
        assert stored(client) == {'foo.example.org': [
            ('A', '1.2.3.4'),
            ('TXT', 'heritage=endpointdns,endpointdns/owner=default,endpointdns/resource=service/default/foo'),
        ]}

        recording = RecordingClient(records=client.list())
        controller(cluster, recording).run_once()
        assert recording.calls == []

        cluster.services = [service(annotations={HOSTNAME_ANNOTATION_KEY: 'foo.example.org'}, ips=['5.6.7.8'])]
        recording = RecordingClient(records=client.list())
        controller(cluster, recording).run_once()
        assert recording.methods == ['update', 'update']
        assert [r.targets[0] for _, r in recording.calls] == ['5.6.7.8', '1.2.3.4']
        ctl.run_once()

        cluster.services = []
        ctl.run_once()
        assert client.resources == {}

    def test_upsert_only_keeps_records(self):
        svc = service(annotations={HOSTNAME_ANNOTATION_KEY: 'foo.example.org'}, ips=['1.2.3.4'])
        cluster = FakeCluster(services=[svc])
        client = InMemoryClient()
        ctl = controller(cluster, client, upsert_only_policy)
        ctl.run_once()
        cluster.services = []
        ctl.run_once()
        assert 'foo.example.org' in client.resources

    def test_source_failure_applies_nothing(self):
        client = RecordingClient()
        with pytest.raises(CollectionError):
            controller(FakeCluster(services_error=CollectionError('boom')), client).run_once()
        assert client.calls == []

    def test_provider_failure_propagates(self):
        svc = service(annotations={HOSTNAME_ANNOTATION_KEY: 'foo.example.org'}, ips=['1.2.3.4'])
        with pytest.raises(ProviderError):
            controller(FakeCluster(services=[svc]), RecordingClient(fail_on='create')).run_once()


class TestRun:
    def test_errors_do_not_stop_the_loop(self, caplog):
        stop = threading.Event()

        class Source:
            calls = 0

            def endpoints(self):
                Source.calls += 1
                if Source.calls == 2:
                    stop.set()
                raise CollectionError('boom')

        registry = TXTRegistry(Provider(InMemoryClient()), '', 'default')
        Controller(Source(), registry, sync_policy, interval=0.01).run(stop)
        assert Source.calls == 2
        assert 'Reconciliation failed' in caplog.text

    def test_stopped_before_start(self):
        stop = threading.Event()
        stop.set()
        client = RecordingClient()
        controller(FakeCluster(), client).run(stop)
        assert client.calls == []


class TestDomainFilter:
    def test_desired_records_outside_filter_are_ignored(self):
        services = [
            service(name='in', annotations={HOSTNAME_ANNOTATION_KEY: 'in.example.org'}, ips=['1.2.3.4']),
            service(name='out', annotations={HOSTNAME_ANNOTATION_KEY: 'out.other.org'}, ips=['5.6.7.8']),
        ]
        client = RecordingClient()
        source = MultiSource([ServiceSource(FakeCluster(services=services), SourceConfig())])
        registry = TXTRegistry(Provider(client), '', 'default')
        Controller(source, registry, sync_policy, domain_filter=DomainFilter(['example.org'])).run_once()
        assert [r.domain for _, r in client.calls] == ['in.example.org']

    def test_foreign_records_are_not_deleted(self):
        client = RecordingClient(records=[DNSRecord('x.other.org', 'A', ['9.9.9.9'])])
        source = MultiSource([ServiceSource(FakeCluster(), SourceConfig())])
        registry = NoopRegistry(Provider(client, domain_filter=DomainFilter(['example.org'])))
        Controller(source, registry, sync_policy).run_once()
        assert client.calls == []
