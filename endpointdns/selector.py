"""
Label selector expressions evaluated against resource annotations

Supports the Kubernetes selector grammar:
    key=value, key==value, key!=value
    key in (v1,v2), key notin (v1,v2)
    key, !key
Requirements are comma separated and all of them must match.
"""

import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from .errors import ConfigurationError

_TOKEN_RE = re.compile(r'\s*(?:(==|!=|=|\(|\)|,|!)|([^\s=!(),]+))')
_NAME_RE = re.compile(r'^[A-Za-z0-9]([-A-Za-z0-9_.]*[A-Za-z0-9])?$')
_PREFIX_RE = re.compile(r'^[a-z0-9]([-a-z0-9]*[a-z0-9])?(\.[a-z0-9]([-a-z0-9]*[a-z0-9])?)*$')

OP_EQUALS = '='
OP_NOT_EQUALS = '!='
OP_IN = 'in'
OP_NOT_IN = 'notin'
OP_EXISTS = 'exists'
OP_DOES_NOT_EXIST = '!'


@dataclass(frozen=True)
class Requirement:
    key: str
    operator: str
    values: Tuple[str, ...] = ()

    def matches(self, labels: Dict[str, str]) -> bool:
        if self.operator == OP_EXISTS:
            return self.key in labels
        if self.operator == OP_DOES_NOT_EXIST:
            return self.key not in labels
        if self.operator in (OP_EQUALS, OP_IN):
            return self.key in labels and labels[self.key] in self.values
        # != and notin also match when the key is absent
        return self.key not in labels or labels[self.key] not in self.values


class Selector:
    """Parsed selector; an empty selector matches everything"""

    def __init__(self, requirements: List[Requirement]):
        self.requirements = requirements

    def empty(self) -> bool:
        return not self.requirements

    def matches(self, labels: Optional[Dict[str, str]]) -> bool:
        labels = labels or {}
        return all(r.matches(labels) for r in self.requirements)

    def __str__(self) -> str:
        return ','.join(f'{r.key} {r.operator} {",".join(r.values)}'.strip() for r in self.requirements)


def _validate_key(key: str, expression: str):
    prefix, _, name = key.rpartition('/')
    if prefix and (len(prefix) > 253 or not _PREFIX_RE.match(prefix)):
        raise ConfigurationError(f"invalid selector key prefix {prefix!r} in {expression!r}")
    if not name or len(name) > 63 or not _NAME_RE.match(name):
        raise ConfigurationError(f"invalid selector key {key!r} in {expression!r}")


def _validate_value(value: str, expression: str):
    if value and (len(value) > 63 or not _NAME_RE.match(value)):
        raise ConfigurationError(f"invalid selector value {value!r} in {expression!r}")


def _tokenize(expression: str) -> List[str]:
    tokens = []
    pos = 0
    stripped = expression.rstrip()
    while pos < len(stripped):
        match = _TOKEN_RE.match(stripped, pos)
        if not match or match.end() == pos:
            raise ConfigurationError(f"unparsable selector {expression!r} at position {pos}")
        tokens.append(match.group(1) or match.group(2))
        pos = match.end()
    return tokens


class _Parser:
    def __init__(self, expression: str):
        self.expression = expression
        self.tokens = _tokenize(expression)
        self.pos = 0

    def peek(self) -> Optional[str]:
        if self.pos < len(self.tokens):
            return self.tokens[self.pos]
        return None

    def next(self) -> Optional[str]:
        token = self.peek()
        self.pos += 1
        return token

    def fail(self, reason: str):
        raise ConfigurationError(f"invalid selector {self.expression!r}: {reason}")

    def word(self) -> str:
        token = self.next()
        if token is None or token in ('==', '!=', '=', '(', ')', ',', '!'):
            self.fail(f"expected identifier, found {token!r}")
        return token

    def parse(self) -> List[Requirement]:
        requirements = []
        while self.peek() is not None:
            requirements.append(self.requirement())
            token = self.next()
            if token is None:
                break
            if token != ',':
                self.fail(f"expected ',', found {token!r}")
            if self.peek() is None:
                self.fail('trailing comma')
        return requirements

    def requirement(self) -> Requirement:
        if self.peek() == '!':
            self.next()
            key = self.word()
            _validate_key(key, self.expression)
            return Requirement(key, OP_DOES_NOT_EXIST)

        key = self.word()
        _validate_key(key, self.expression)
        token = self.peek()
        if token is None or token == ',':
            return Requirement(key, OP_EXISTS)

        self.next()
        if token in ('=', '=='):
            return Requirement(key, OP_EQUALS, (self.value(),))
        if token == '!=':
            return Requirement(key, OP_NOT_EQUALS, (self.value(),))
        if token in (OP_IN, OP_NOT_IN):
            return Requirement(key, token, self.value_set())
        self.fail(f"unknown operator {token!r}")

    def value(self) -> str:
        token = self.peek()
        if token is None or token == ',':
            return ''
        value = self.word()
        _validate_value(value, self.expression)
        return value

    def value_set(self) -> Tuple[str, ...]:
        if self.next() != '(':
            self.fail("expected '(' after set operator")
        values = []
        while True:
            token = self.peek()
            if token == ')':
                self.next()
                break
            if token == ',':
                self.next()
                continue
            if token is None:
                self.fail("missing ')'")
            values.append(self.value())
        if not values:
            self.fail('empty value set')
        return tuple(values)


def parse_selector(expression: str) -> Selector:
    """Parse a selector expression, raising ConfigurationError when malformed"""
    if not expression or not expression.strip():
        return Selector([])
    return Selector(_Parser(expression).parse())
