"""Stacked inventory and equipment slots."""
