"""Database plumbing: declarative base, engine and transaction management."""
