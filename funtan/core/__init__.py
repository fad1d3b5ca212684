"""Core infrastructure: configuration, logging, database, events and validation."""
