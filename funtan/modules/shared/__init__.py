"""
Shared building blocks for engine services: base classes, the domain
exception hierarchy, the uniform result type and pure formulas.
"""
