"""
schemas/ — Pydantic payload models for the storefront API

Provides the declared shapes the API client validates requests and
responses against, plus the validator itself (schemas/validation.py).
"""
