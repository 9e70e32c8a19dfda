"""Migration 002: record of sync attempts."""

from daygo_cli.adapters.sqlite import schema

from .runner import Migration

sync_sessions_migration = Migration(
    version=2,
    description="Sync session audit table",
    statements=(schema.CREATE_SYNC_SESSIONS_TABLE, *schema.SYNC_SESSION_INDEXES),
)
