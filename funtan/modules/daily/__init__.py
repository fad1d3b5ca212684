"""Daily reward claims."""
