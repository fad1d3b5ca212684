"""Admin currency/item primitives and the server-admin registry."""
