"""
Tubely - media uploads for a video sharing platform.

This package contains the upload service:
- core: Framework-agnostic ingestion logic
- infrastructure: Storage, database, probing and token handling
- api: FastAPI routes and dependencies
- config: Application configuration
"""

__version__ = "0.1.0"
