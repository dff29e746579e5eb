"""Shared helpers used across Chronologicon layers."""
