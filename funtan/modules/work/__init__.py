"""Timed work sessions."""
