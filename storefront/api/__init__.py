"""API client — schema-validated request executor."""

from storefront.api.client import METHODS, ApiClient, RequestDescriptor

__all__ = ("ApiClient", "RequestDescriptor", "METHODS")
