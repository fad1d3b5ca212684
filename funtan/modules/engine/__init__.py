"""Engine facade: every player action in, one `EngineResult` out."""

from funtan.modules.engine.decorators import engine_operation
from funtan.modules.engine.service import GameEngine

__all__ = ["GameEngine", "engine_operation"]
