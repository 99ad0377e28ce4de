"""
Infrastructure layer - external service integrations.

Each subdirectory wraps an external dependency:
- auth: JWT bearer token verification
- snowflake: Video record persistence
- storage: Object store (S3), local assets directory and inline assets
- video: Upload staging and FFprobe

These wrappers translate between external formats and our domain models.
"""
