"""Persistent schema for the Funtan engine."""
