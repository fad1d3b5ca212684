"""
Configuration subsystem for Funtan.

- **config.py**: static configuration from environment variables (.env support)
- **manager.py**: layered game-balance configuration with dot-notation access

`ConfigManager` is imported from `funtan.core.config.manager` directly; it
depends on the logging subsystem, which itself reads `Config`.
"""

from funtan.core.config.config import Config, Environment

__all__ = ["Config", "Environment"]
