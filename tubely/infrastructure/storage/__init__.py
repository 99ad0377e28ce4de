"""
Asset storage.

Supports an S3-compatible object store, a local assets directory, and
inline data URIs. Includes a mock object store for local development
without credentials.
"""
