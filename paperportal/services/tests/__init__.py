"""Tests for :mod:`paperportal.services`."""
