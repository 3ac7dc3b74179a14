"""Exception hierarchy shared by the whole controller"""


class EndpointDNSError(Exception):
    """Base class for all endpointdns errors"""


class ConfigurationError(EndpointDNSError):
    """Invalid startup configuration (filter, template, flags)"""


class CollectionError(EndpointDNSError):
    """Listing resources from the cluster failed"""


class ForbiddenError(CollectionError):
    """The cluster refused to list a resource kind (HTTP 403)"""


class ProviderError(EndpointDNSError):
    """A DNS provider call failed"""
