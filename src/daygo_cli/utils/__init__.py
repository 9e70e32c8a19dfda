"""Utility helpers for daygo CLI."""
