"""Taskboard backend package."""
