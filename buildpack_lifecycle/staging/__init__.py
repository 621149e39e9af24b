"""
Staging documents: release output, Procfile, staging info and result.
"""

from .models import (
    LIFECYCLE_TYPE,
    PROCFILE_FILENAME,
    STAGING_INFO_FILENAME,
    LifecycleMetadata,
    ReleaseInfo,
    StagingInfo,
    StagingInfoConfig,
    StagingResult,
    read_procfile,
)
from .yaml_loader import LenientLoader, load_lenient

__all__ = [
    "LIFECYCLE_TYPE",
    "PROCFILE_FILENAME",
    "STAGING_INFO_FILENAME",
    "LenientLoader",
    "LifecycleMetadata",
    "ReleaseInfo",
    "StagingInfo",
    "StagingInfoConfig",
    "StagingResult",
    "load_lenient",
    "read_procfile",
]
