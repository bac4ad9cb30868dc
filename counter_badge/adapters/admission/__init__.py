"""Admission control adapters.

This package decides per request whether a client may bump the counter. It
starts with an in-memory record and can later migrate to a shared store
without changing the service or the API layer.
"""
