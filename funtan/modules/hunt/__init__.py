"""Hunt resolution."""
