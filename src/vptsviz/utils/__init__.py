"""Shared logging and timezone helpers."""
