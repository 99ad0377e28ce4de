"""
Core logic for media ingestion.

This module is framework-agnostic - it doesn't import FastAPI, boto3,
Snowflake or any other infrastructure concern. Storage, persistence
and probing are reached through protocols that infrastructure
implements.
"""
