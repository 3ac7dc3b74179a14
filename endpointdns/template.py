"""
Hostname templates

A template is plain text with Go-style actions, compiled once at startup:

    {{.Name}}.example.com
    {{.Name}}-{{.Namespace}}.example.com, {{.Name}}.example.org
    {{trimPrefix .Name "web-"}}.example.com
    {{.Labels.team}}.example.com

Fields: .Name .Namespace .Kind .Labels.<key> .Annotations.<key>
Functions: trimPrefix s prefix, trimSuffix s suffix, toLower s
"""

import logging
import re
from typing import Callable, Dict, List, Optional, Union

from .errors import ConfigurationError

log = logging.getLogger(__name__)

_ACTION_RE = re.compile(r'{{(.*?)}}', re.DOTALL)
_ARG_RE = re.compile(r'"(?:[^"\\]|\\.)*"|\S+')

SCALAR_FIELDS = ('Name', 'Namespace', 'Kind')
MAP_FIELDS = ('Labels', 'Annotations')


def _trim_prefix(s: str, prefix: str) -> str:
    return s[len(prefix):] if prefix and s.startswith(prefix) else s


def _trim_suffix(s: str, suffix: str) -> str:
    return s[:-len(suffix)] if suffix and s.endswith(suffix) else s


FUNCTIONS: Dict[str, Callable[..., str]] = {
    'trimPrefix': _trim_prefix,
    'trimSuffix': _trim_suffix,
    'toLower': str.lower,
}
ARITY = {'trimPrefix': 2, 'trimSuffix': 2, 'toLower': 1}

Evaluator = Callable[[dict], str]


def template_context(kind: str, name: str, namespace: str,
                     labels: Optional[Dict[str, str]] = None,
                     annotations: Optional[Dict[str, str]] = None) -> dict:
    """Field set exposed to templates"""
    return {
        'Kind': kind,
        'Name': name or '',
        'Namespace': namespace or '',
        'Labels': dict(labels or {}),
        'Annotations': dict(annotations or {}),
    }


class HostnameTemplate:
    """Compiled hostname template"""

    def __init__(self, source: str):
        self.source = source
        self._parts: List[Union[str, Evaluator]] = self._compile(source)

    def _fail(self, reason: str):
        raise ConfigurationError(f"invalid fqdn template {self.source!r}: {reason}")

    def _compile(self, source: str) -> List[Union[str, Evaluator]]:
        parts: List[Union[str, Evaluator]] = []
        pos = 0
        for match in _ACTION_RE.finditer(source):
            if match.start() > pos:
                parts.append(self._literal(source[pos:match.start()]))
            parts.append(self._compile_action(match.group(1).strip()))
            pos = match.end()
        if pos < len(source):
            parts.append(self._literal(source[pos:]))
        return parts

    def _literal(self, text: str) -> str:
        if '{{' in text or '}}' in text:
            self._fail('unbalanced action delimiters')
        return text

    def _compile_action(self, action: str) -> Evaluator:
        if not action:
            self._fail('empty action')
        args = _ARG_RE.findall(action)
        if args[0].startswith('.'):
            if len(args) != 1:
                self._fail(f"unexpected arguments after field in {{{{{action}}}}}")
            return self._compile_arg(args[0])

        name = args[0]
        if name not in FUNCTIONS:
            self._fail(f"function {name!r} not defined")
        if len(args) - 1 != ARITY[name]:
            self._fail(f"wrong number of args for {name}: want {ARITY[name]} got {len(args) - 1}")
        fn = FUNCTIONS[name]
        evaluators = [self._compile_arg(a) for a in args[1:]]
        return lambda ctx: fn(*(e(ctx) for e in evaluators))

    def _compile_arg(self, arg: str) -> Evaluator:
        if arg.startswith('"'):
            if len(arg) < 2 or not arg.endswith('"'):
                self._fail(f"unterminated string {arg}")
            value = arg[1:-1].replace('\\"', '"').replace('\\\\', '\\')
            return lambda ctx: value
        if not arg.startswith('.'):
            self._fail(f"unexpected token {arg!r}")

        path = arg[1:].split('.', 1)
        field = path[0]
        if field in SCALAR_FIELDS:
            if len(path) > 1:
                self._fail(f"can't evaluate field {path[1]} of {field}")
            return lambda ctx: ctx.get(field, '')
        if field in MAP_FIELDS:
            if len(path) == 1 or not path[1]:
                self._fail(f"map field {field} needs a key")
            key = path[1]
            return lambda ctx: ctx.get(field, {}).get(key, '')
        self._fail(f"can't evaluate field {field!r}")

    def execute(self, context: dict) -> str:
        return ''.join(p if isinstance(p, str) else p(context) for p in self._parts)

    def hostnames(self, context: dict) -> List[str]:
        """Render and split into hostnames; spaces removed, trailing dots stripped"""
        rendered = self.execute(context).replace(' ', '')
        hostnames = [h.rstrip('.') for h in rendered.split(',')]
        hostnames = [h for h in hostnames if h]
        if not hostnames:
            log.warning(f"Template {self.source!r} rendered no hostnames for "
                        f"{context.get('Kind')} {context.get('Namespace')}/{context.get('Name')}")
        return hostnames


def compile_template(source: str) -> Optional[HostnameTemplate]:
    """Compile a template; an empty source means no template"""
    if not source:
        return None
    return HostnameTemplate(source)
