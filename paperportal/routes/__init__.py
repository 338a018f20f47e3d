"""Provides Flask integration for the portal API."""

from .api import blueprint
