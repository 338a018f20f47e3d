"""Tests for :mod:`paperportal.auth`."""
