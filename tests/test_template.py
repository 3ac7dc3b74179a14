import logging

import pytest

from endpointdns.errors import ConfigurationError
from endpointdns.template import HostnameTemplate, compile_template, template_context


def ctx(**kwargs):
    defaults = dict(kind='service', name='web', namespace='default', labels={'team': 'blue'},
                    annotations={'owner': 'ops'})
    defaults.update(kwargs)
    return template_context(**defaults)


class TestHostnameTemplate:
    def test_fields(self):
        template = HostnameTemplate('{{.Name}}.{{.Namespace}}.{{.Kind}}.example.com')
        assert template.hostnames(ctx()) == ['web.default.service.example.com']

    def test_map_fields(self):
        template = HostnameTemplate('{{.Labels.team}}-{{.Annotations.owner}}.example.com')
        assert template.hostnames(ctx()) == ['blue-ops.example.com']

    def test_missing_map_key_renders_empty(self):
        assert HostnameTemplate('{{.Labels.nope}}x.example.com').execute(ctx()) == 'x.example.com'

    def test_functions(self):
        template = HostnameTemplate('{{trimPrefix .Name "web-"}}.{{toLower .Namespace}}.{{trimSuffix "a.b." ".b."}}')
        assert template.execute(ctx(name='web-api', namespace='Prod')) == 'api.prod.a'

    def test_multiple_hostnames(self):
        """Spaces are dropped, trailing dots stripped and empty entries removed"""
        template = HostnameTemplate('{{.Name}}.example.com. , {{.Name}}.example.org,,')
        assert template.hostnames(ctx()) == ['web.example.com', 'web.example.org']

    def test_empty_render_warns(self, caplog):
        template = HostnameTemplate('{{.Labels.nope}}')
        with caplog.at_level(logging.WARNING):
            assert template.hostnames(ctx()) == []
        assert 'rendered no hostnames' in caplog.text

    @pytest.mark.parametrize('source', [
        '{{.Nope}}.example.com',
        '{{}}',
        '{{.Name}.example.com',
        '{{trimPrefix .Name}}',
        '{{upper .Name}}',
        '{{.Labels}}',
        '{{.Name.Sub}}',
        '{{toLower Name}}',
    ])
    def test_compile_errors(self, source):
        with pytest.raises(ConfigurationError):
            HostnameTemplate(source)

    def test_compile_template_empty(self):
        assert compile_template('') is None
        assert isinstance(compile_template('{{.Name}}.example.com'), HostnameTemplate)
