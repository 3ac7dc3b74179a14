"""
endpointdns - publish Kubernetes entrypoints to DNS

Watches Services, Ingresses and Istio Gateways, derives the DNS records they
ask for through annotations, and keeps a DNS provider in sync with them.
"""

__version__ = '0.1.0'
