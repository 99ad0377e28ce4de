"""
Configuration for the upload service.

Settings are read from environment variables (or .env) once per process.
Mock modes replace Snowflake, S3 and ffprobe for local development.
"""

from .settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
