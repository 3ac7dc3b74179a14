"""Provider client for the Shaman DNS HTTP API"""

import logging
from typing import List, Optional

import requests

from ..errors import ProviderError
from ..merge import Resource
from ..record import DNSRecord
from . import group_records

log = logging.getLogger(__name__)


def resource_to_json(resource: Resource) -> dict:
    return {
        'domain': resource.domain,
        'records': [
            {'address': r.address, 'type': r.rtype, 'class': r.rclass, 'ttl': r.ttl or 0}
            for r in resource.records
        ],
    }


class ShamanClient:
    """Reads and writes resources through /records using a static auth token"""

    DEFAULT_TIMEOUT = (10, 30)

    def __init__(self, host: str, token: str, session: Optional[requests.Session] = None):
        self.host = host.rstrip('/')
        self.session = session or requests.Session()
        self.session.headers.update({
            'X-AUTH-TOKEN': token,
            'Content-Type': 'application/json',
            'Accept': 'application/json',
        })
        log.info(f"Initialized Shaman client for {self.host}")

    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        url = f'{self.host}{path}'
        log.debug(f"{method} {url}")
        try:
            response = self.session.request(method, url, timeout=self.DEFAULT_TIMEOUT, **kwargs)
            response.raise_for_status()
        except requests.RequestException as e:
            raise ProviderError(f"Shaman {method} {path} failed: {e}") from e
        return response

    def list(self) -> List[DNSRecord]:
        response = self._request('GET', '/records', params={'full': 'true'})
        return group_records(
            (resource.get('domain', ''), r.get('type', ''), r.get('ttl') or None, r.get('address', ''))
            for resource in response.json() or [] for r in resource.get('records') or []
        )

    def create(self, resource: Resource):
        log.info(f"Adding {resource}")
        self._request('POST', '/records', json=resource_to_json(resource))

    def update(self, resource: Resource):
        log.info(f"Updating {resource}")
        self._request('PUT', f'/records/{resource.domain}', json=resource_to_json(resource))

    def delete(self, name: str):
        log.info(f"Deleting {name}")
        self._request('DELETE', f'/records/{name}')
