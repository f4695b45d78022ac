"""Shared helpers for model construction and call timeouts."""
