"""
Release installation service — package re-exports.

    from formulary.core.services.install import select_artifact, fetch_artifact

Each symbol lives in its single-responsibility module (errors → selection
→ deps → download → archive → steps).
"""

# ── L1: Domain ──
from formulary.core.services.install.errors import (  # noqa: F401
    ArtifactNotFoundError,
    ChecksumMismatchError,
    ConversionError,
    DownloadError,
    InstallError,
    MissingDependencyError,
    UnsupportedPlatformError,
)

# ── L3: Detection ──
from formulary.core.services.install.deps import (  # noqa: F401
    check_build_dependencies,
    require_build_dependencies,
)
from formulary.core.services.install.selection import (  # noqa: F401
    SelectedArtifact,
    detect_os,
    select_artifact,
)

# ── L4: Execution ──
from formulary.core.services.install.archive import extract_archive, locate  # noqa: F401
from formulary.core.services.install.download import (  # noqa: F401
    fetch_artifact,
    sha256_file,
    verify_checksum,
)
from formulary.core.services.install.steps import (  # noqa: F401
    install_binary,
    install_man_page,
    remove_artifact,
    render_man_page,
)
