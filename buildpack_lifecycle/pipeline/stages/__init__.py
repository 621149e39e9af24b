"""
Staging stages, in pipeline order.
"""

from .acquire import AcquireStage, PruneCacheStage
from .assemble import ArchiveStage, AssembleStage
from .compile import CompileStage
from .detect import DetectStage
from .release import MISSING_WEB_MESSAGES, ReleaseStage
from .supply import SupplyStage

__all__ = [
    "MISSING_WEB_MESSAGES",
    "AcquireStage",
    "ArchiveStage",
    "AssembleStage",
    "CompileStage",
    "DetectStage",
    "PruneCacheStage",
    "ReleaseStage",
    "SupplyStage",
]
