"""
L3 Detection — Build dependency checking.

Read-only probe: is every build-time tool of a formula on PATH?
"""

from __future__ import annotations

import logging
import shutil

from formulary.core.models.formula import Formula
from formulary.core.services.install.errors import MissingDependencyError

logger = logging.getLogger(__name__)


def check_build_dependencies(formula: Formula) -> list[str]:
    """Return the build-time tools that are not on PATH."""
    missing = [name for name in formula.build_tools() if shutil.which(name) is None]
    if missing:
        logger.info("%s: missing build dependencies %s", formula.name, missing)
    return missing


def require_build_dependencies(formula: Formula) -> None:
    """Raise if any build-time tool is missing.

    The converter used for the man page is checked too, even when the
    formula forgot to declare it.

    Raises:
        MissingDependencyError: One or more tools are missing.
    """
    missing = check_build_dependencies(formula)
    converter = formula.install.man_page.converter
    if converter not in formula.build_tools() and shutil.which(converter) is None:
        missing.append(converter)
    if missing:
        raise MissingDependencyError(formula.name, missing)
