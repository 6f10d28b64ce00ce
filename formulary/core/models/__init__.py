"""
Domain models — Pydantic types for formulary.

All models are re-exported here for convenient access:

    from formulary.core.models import Formula, Settings, InstallState
"""

from formulary.core.models.formula import (
    SUPPORTED_PLATFORMS,
    BuildDependency,
    Formula,
    HeadSpec,
    InstallSpec,
    ManPage,
    ReleaseArtifact,
)
from formulary.core.models.settings import Settings
from formulary.core.models.state import InstalledFormula, InstallState

__all__ = [
    # formula.py
    "BuildDependency",
    "Formula",
    "HeadSpec",
    "InstallSpec",
    "ManPage",
    "ReleaseArtifact",
    "SUPPORTED_PLATFORMS",
    # settings.py
    "Settings",
    # state.py
    "InstallState",
    "InstalledFormula",
]
