"""
State file persistence — atomic read/write for InstallState.

State is stored as JSON in <prefix>/var/formulary/state.json. Writes are
atomic (write to temp file, then rename) so a crash mid-write never
leaves a half-written record of installed files.
"""

from __future__ import annotations

import json
import logging
import tempfile
from pathlib import Path

from formulary.core.models.state import InstallState

logger = logging.getLogger(__name__)

DEFAULT_STATE_FILE = "state.json"


def default_state_path(state_dir: Path) -> Path:
    """Get the state file path inside a state directory."""
    return state_dir / DEFAULT_STATE_FILE


def load_state(path: Path) -> InstallState:
    """Load install state from a JSON file.

    Returns:
        InstallState model. A missing or corrupt file yields a fresh state.
    """
    if not path.is_file():
        logger.info("No state file at %s — starting fresh", path)
        return InstallState()

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        state = InstallState.model_validate(data)
        logger.debug("Loaded state from %s (%d installed)", path, len(state.installed))
        return state
    except json.JSONDecodeError as e:
        logger.warning("Corrupt state file %s: %s — starting fresh", path, e)
        return InstallState()
    except Exception as e:
        logger.warning("Cannot load state from %s: %s — starting fresh", path, e)
        return InstallState()


def save_state(state: InstallState, path: Path) -> None:
    """Save install state to a JSON file (atomic write)."""
    state.touch()

    path.parent.mkdir(parents=True, exist_ok=True)

    data = state.model_dump(mode="json")
    content = json.dumps(data, indent=2, ensure_ascii=False) + "\n"

    try:
        _fd, tmp_path = tempfile.mkstemp(
            dir=path.parent,
            prefix=".state_",
            suffix=".tmp",
        )
        tmp = Path(tmp_path)
        try:
            with open(_fd, "w", encoding="utf-8") as f:
                f.write(content)
            tmp.replace(path)
            logger.debug("State saved to %s", path)
        except Exception:
            tmp.unlink(missing_ok=True)
            raise
    except Exception as e:
        logger.error("Failed to save state to %s: %s", path, e)
        raise
