"""Storefront API client layer: validated requests, retries, error normalization and query orchestration."""

__version__ = "0.1.0"
