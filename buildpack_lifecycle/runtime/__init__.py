"""
Runtime: environment assembly and process launch.
"""

from .database_uri import database_url
from .env import EnvBuilder, mutate_vcap_application
from .launcher import (
    PRE_START_MESSAGE,
    START_MESSAGE,
    LaunchPlan,
    Launcher,
    build_script,
    execute,
    profile_scripts,
    resolve_start_command,
)

__all__ = [
    "PRE_START_MESSAGE",
    "START_MESSAGE",
    "EnvBuilder",
    "LaunchPlan",
    "Launcher",
    "build_script",
    "database_url",
    "execute",
    "mutate_vcap_application",
    "profile_scripts",
    "resolve_start_command",
]
