"""
Model registry. Importing this package registers every table on
`Base.metadata`.
"""

from funtan.database.models.daily_claim import DailyClaim
from funtan.database.models.enums import Currency, ItemKind, WorkStatus
from funtan.database.models.hunt import HuntCooldown, HuntRecord
from funtan.database.models.inventory import InventoryItem
from funtan.database.models.player import Player
from funtan.database.models.server_admin import ServerAdmin
from funtan.database.models.work_session import WorkSession

__all__ = [
    "Currency",
    "DailyClaim",
    "HuntCooldown",
    "HuntRecord",
    "InventoryItem",
    "ItemKind",
    "Player",
    "ServerAdmin",
    "WorkSession",
]
