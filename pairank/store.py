"""Workspace persistence as a single JSON document."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from .engine import RankingError
from .lists import ListNotFound, Workspace

logger = logging.getLogger(__name__)

STATE_ENV_VAR = "PAIRANK_STATE"
STATE_VERSION = 1


def default_state_path() -> Path:
    """State file location: ``$PAIRANK_STATE`` or ``~/.pairank/state.json``."""
    override = os.environ.get(STATE_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".pairank" / "state.json"


def save_state(workspace: Workspace, path: str | Path) -> None:
    """Write the workspace to ``path``, replacing any previous state atomically."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    data = {"version": STATE_VERSION, **workspace.to_dict()}
    tmp_path = path.with_name(path.name + ".tmp")
    tmp_path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
    os.replace(tmp_path, path)
    logger.debug("Saved %d lists to %s", len(workspace.lists), path)


def load_state(path: str | Path) -> Workspace | None:
    """Read a workspace from ``path``.

    Returns:
        The workspace, or None if the file is missing or unreadable as state
    """
    path = Path(path)
    if not path.exists():
        return None

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.warning("State file %s is not valid JSON (%s) - starting fresh", path, e)
        return None

    if not isinstance(data, dict):
        logger.warning("State file %s does not hold an object - starting fresh", path)
        return None

    version = data.get("version", STATE_VERSION)
    if version != STATE_VERSION:
        logger.warning("State file %s has unsupported version %r - starting fresh", path, version)
        return None

    try:
        workspace = Workspace.from_dict(data)
    except (KeyError, TypeError, ValueError, RankingError, ListNotFound) as e:
        logger.warning("State file %s is malformed (%s) - starting fresh", path, e)
        return None

    logger.debug("Loaded %d lists from %s", len(workspace.lists), path)
    return workspace


def clear_state(path: str | Path) -> None:
    Path(path).unlink(missing_ok=True)
