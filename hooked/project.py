"""
Project identification for hook payloads.

The agent stores each project's transcripts under a folder named after the
project path, e.g. ``/Users/me/dev/my-project`` becomes
``-Users-me-dev-my-project``. That folder name, stripped of its leading dash,
is the *project key* used to target pending continuations.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Mapping, Optional

DEFAULT_LABEL = "session"

_PROJECT_FOLDER_RE = re.compile(r"projects/([^/]+)/")
_LAST_SEGMENT_RE = re.compile(r"projects/[^/]*-([^/]+)/")


def normalize_project_key(folder: str) -> str:
    return folder.strip("-")


def path_to_project_key(path: str | Path) -> str:
    """
    Convert a filesystem path to a project key.

    /Users/me/dev/my-project -> Users-me-dev-my-project
    """
    return normalize_project_key(re.sub(r"[^A-Za-z0-9-]", "-", str(path)))


def extract_project_folder(transcript_path: str) -> Optional[str]:
    """
    Extract the project folder from a transcript path.

    ~/.claude/projects/-Users-me-dev-my-project/abc.jsonl -> -Users-me-dev-my-project
    """
    match = _PROJECT_FOLDER_RE.search(transcript_path)
    return match.group(1) if match else None


def project_key_from_payload(payload: Mapping[str, Any]) -> Optional[str]:
    """Project key from a hook payload: transcript folder first, then cwd."""
    transcript_path = payload.get("transcript_path")
    if isinstance(transcript_path, str) and transcript_path:
        folder = extract_project_folder(transcript_path)
        if folder:
            return normalize_project_key(folder)

    cwd = payload.get("cwd")
    if isinstance(cwd, str) and cwd:
        return path_to_project_key(cwd)

    return None


def _speakable(name: str) -> str:
    return name.replace(".", " dot ").strip()


def project_label_from_payload(payload: Mapping[str, Any]) -> str:
    """
    Readable project name for announcements.

    Uses the basename of ``cwd`` when present, otherwise the last dash-separated
    segment of the transcript folder.
    """
    cwd = payload.get("cwd")
    if isinstance(cwd, str) and cwd:
        name = Path(cwd).name
        if name:
            return _speakable(name)

    transcript_path = payload.get("transcript_path")
    if isinstance(transcript_path, str) and transcript_path:
        match = _LAST_SEGMENT_RE.search(transcript_path)
        if match:
            return _speakable(match.group(1))
        folder = extract_project_folder(transcript_path)
        if folder:
            return _speakable(folder.replace("-", " "))

    return DEFAULT_LABEL
