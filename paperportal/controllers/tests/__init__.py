"""Tests for :mod:`paperportal.controllers`."""
