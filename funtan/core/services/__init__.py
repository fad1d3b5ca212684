"""Process-level service wiring."""
