"""Wrappers around third-party sites and APIs."""
