"""
Domain models — Pydantic types for a provisioning run.

All models are re-exported here for convenient access:

    from devbox.core.models import PlatformInfo, PackageSpec, StepRecord
"""

from devbox.core.models.execution import ExecutionResult
from devbox.core.models.package import InstallOutcome, PackageSpec
from devbox.core.models.platform import Architecture, Family, PlatformInfo
from devbox.core.models.profile import DotfilesConfig, GoSnapConfig, Profile, SshKeyConfig
from devbox.core.models.step import StepOutcome, StepRecord, StepResult

__all__ = [
    # platform.py
    "Architecture",
    "Family",
    "PlatformInfo",
    # package.py
    "InstallOutcome",
    "PackageSpec",
    # execution.py
    "ExecutionResult",
    # step.py
    "StepOutcome",
    "StepRecord",
    "StepResult",
    # profile.py
    "DotfilesConfig",
    "GoSnapConfig",
    "Profile",
    "SshKeyConfig",
]
