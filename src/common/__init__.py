"""Shared helpers used across npmctl modules."""
