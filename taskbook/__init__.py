"""Taskbook: personal task tracker with soft delete and edit history."""
