import pytest

from endpointdns.errors import ConfigurationError
from endpointdns.selector import parse_selector


class TestParseSelector:
    def test_empty_matches_everything(self):
        selector = parse_selector('')
        assert selector.empty()
        assert selector.matches(None)
        assert selector.matches({'a': 'b'})

    @pytest.mark.parametrize('expression', [
        'kubernetes.io/ingress.class=nginx',
        'kubernetes.io/ingress.class==nginx',
        'kubernetes.io/ingress.class in (nginx, traefik)',
        'kubernetes.io/ingress.class',
        'kubernetes.io/ingress.class,team!=ops',
    ])
    def test_matching(self, expression):
        assert parse_selector(expression).matches({'kubernetes.io/ingress.class': 'nginx', 'team': 'web'})

    @pytest.mark.parametrize('expression', [
        'kubernetes.io/ingress.class=traefik',
        'kubernetes.io/ingress.class notin (nginx)',
        '!kubernetes.io/ingress.class',
        'missing',
        'kubernetes.io/ingress.class=nginx,team=ops',
    ])
    def test_not_matching(self, expression):
        assert not parse_selector(expression).matches({'kubernetes.io/ingress.class': 'nginx', 'team': 'web'})

    def test_negative_operators_match_absent_keys(self):
        assert parse_selector('team!=ops').matches({})
        assert parse_selector('team notin (ops)').matches({})
        assert not parse_selector('team in (ops)').matches({})

    @pytest.mark.parametrize('expression', [
        'a=b,',
        'a in b',
        'a in ()',
        'a in (b',
        '=b',
        'a=b=c',
        'a=-bad-',
        'UPPER.Prefix/key=v',
    ])
    def test_malformed(self, expression):
        with pytest.raises(ConfigurationError):
            parse_selector(expression)
