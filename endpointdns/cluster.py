"""Kubernetes API access used by the sources"""

import logging
import os
from contextlib import contextmanager
from typing import List, Optional

from kubernetes import client, config
from kubernetes.client import ApiException
from kubernetes.config import ConfigException
from urllib3.exceptions import HTTPError

from .errors import CollectionError, ConfigurationError, ForbiddenError

log = logging.getLogger(__name__)


def load_kube_config(kubeconfig: str = ''):
    """In-cluster service account when running in a pod, kubeconfig otherwise"""
    try:
        if not kubeconfig and 'KUBERNETES_SERVICE_HOST' in os.environ:
            config.load_incluster_config()
            log.info("Using in-cluster Kubernetes configuration")
        else:
            config.load_kube_config(config_file=kubeconfig or None)
            log.info(f"Using kubeconfig {kubeconfig or '(default)'}")
    except ConfigException as e:
        raise ConfigurationError(f"unable to load Kubernetes configuration: {e}") from e


@contextmanager
def _listing(what: str):
    """Translate client failures into CollectionError / ForbiddenError"""
    try:
        yield
    except ApiException as e:
        if e.status == 403:
            raise ForbiddenError(f"forbidden to list {what}: {e.reason}") from e
        raise CollectionError(f"failed to list {what}: {e.status} {e.reason}") from e
    except HTTPError as e:
        raise CollectionError(f"failed to list {what}: {e}") from e


class ClusterClient:
    """Thin wrapper around the Kubernetes API returning model objects"""

    def __init__(self, api_client: Optional[client.ApiClient] = None):
        self.core = client.CoreV1Api(api_client)
        self.networking = client.NetworkingV1Api(api_client)
        self.custom = client.CustomObjectsApi(api_client)

    def list_services(self, namespace: str = '') -> List[client.V1Service]:
        with _listing('services'):
            if namespace:
                return self.core.list_namespaced_service(namespace).items
            return self.core.list_service_for_all_namespaces().items

    def read_service(self, namespace: str, name: str) -> client.V1Service:
        with _listing(f'service {namespace}/{name}'):
            return self.core.read_namespaced_service(name, namespace)

    def list_ingresses(self, namespace: str = '') -> List[client.V1Ingress]:
        with _listing('ingresses'):
            if namespace:
                return self.networking.list_namespaced_ingress(namespace).items
            return self.networking.list_ingress_for_all_namespaces().items

    def list_pods(self, namespace: str, label_selector: str = '') -> List[client.V1Pod]:
        with _listing(f'pods in {namespace}'):
            return self.core.list_namespaced_pod(namespace, label_selector=label_selector).items

    def list_nodes(self) -> List[client.V1Node]:
        with _listing('nodes'):
            return self.core.list_node().items

    def list_custom_objects(self, group: str, version: str, plural: str,
                            namespace: str = '') -> List[dict]:
        with _listing(f'{plural}.{group}'):
            if namespace:
                result = self.custom.list_namespaced_custom_object(group, version, namespace, plural)
            else:
                result = self.custom.list_cluster_custom_object(group, version, plural)
        return result.get('items', [])
