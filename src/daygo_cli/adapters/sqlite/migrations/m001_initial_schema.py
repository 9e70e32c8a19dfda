"""Migration 001: the tasks table and its indexes."""

from daygo_cli.adapters.sqlite import schema

from .runner import Migration

initial_migration = Migration(
    version=1,
    description="Initial database schema",
    statements=(schema.CREATE_TASKS_TABLE, *schema.TASK_INDEXES),
)
