"""Metadata store."""
