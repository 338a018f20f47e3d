"""Tests for :mod:`paperportal`."""
