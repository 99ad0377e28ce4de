"""
Snowflake repositories.

Translate between the Video domain model and rows of the videos table.
"""

from .videos import RepositoryError, VideoRepository

__all__ = ["RepositoryError", "VideoRepository"]
