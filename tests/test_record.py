from endpointdns.record import (
    RECORD_TYPE_A, RECORD_TYPE_CNAME, Changes, DNSRecord, is_ip_address, sort_targets, suitable_type,
)


class TestTargets:
    def test_ip_literals(self):
        assert is_ip_address('1.2.3.4')
        assert is_ip_address('2001:db8::1')
        assert not is_ip_address('lb.example.com')
        assert not is_ip_address('1.2.3')

    def test_suitable_type(self):
        assert suitable_type('10.0.0.1') == RECORD_TYPE_A
        assert suitable_type('lb.example.com') == RECORD_TYPE_CNAME

    def test_sort_targets_numeric_then_lexical(self):
        """IPs come first in numeric order, hostnames after them"""
        targets = ['b.example.com', '10.0.0.10', 'a.example.com', '10.0.0.9', '1.2.3.4']
        assert sort_targets(targets) == ['1.2.3.4', '10.0.0.9', '10.0.0.10', 'a.example.com', 'b.example.com']


class TestDNSRecord:
    def test_trailing_dot_stripped(self):
        assert DNSRecord('foo.example.org.', RECORD_TYPE_A, ['1.2.3.4']).dns_name == 'foo.example.org'

    def test_key_ignores_target_order_and_case(self):
        a = DNSRecord('Foo.example.org', RECORD_TYPE_A, ['1.2.3.4', '8.8.8.8'])
        b = DNSRecord('foo.example.org', RECORD_TYPE_A, ['8.8.8.8', '1.2.3.4'])
        assert a.key() == b.key()
        assert a.same_targets(b)

    def test_key_includes_ttl(self):
        a = DNSRecord('foo.example.org', RECORD_TYPE_A, ['1.2.3.4'], ttl=10)
        b = DNSRecord('foo.example.org', RECORD_TYPE_A, ['1.2.3.4'])
        assert a.key() != b.key()
        assert a.ttl_configured and not b.ttl_configured

    def test_str(self):
        record = DNSRecord('foo.example.org', RECORD_TYPE_A, ['1.2.3.4'], ttl=60)
        assert str(record).startswith('foo.example.org ttl=60 IN A 1.2.3.4')


class TestChanges:
    def test_has_changes(self):
        assert not Changes().has_changes()
        assert Changes(delete=[DNSRecord('foo.example.org', RECORD_TYPE_A, ['1.2.3.4'])]).has_changes()
