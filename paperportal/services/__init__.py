"""Integrations with the document store, blob store and mail service."""
