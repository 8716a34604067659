"""Tests for project key and label derivation."""

import pytest

from hooked.project import (
    DEFAULT_LABEL,
    extract_project_folder,
    path_to_project_key,
    project_key_from_payload,
    project_label_from_payload,
)


class TestProjectKey:
    """Keys match the agent's transcript folder names, minus the leading dash."""

    def test_path_to_key(self):
        assert path_to_project_key("/Users/me/dev/my-project") == "Users-me-dev-my-project"

    def test_dots_and_spaces_become_dashes(self):
        assert path_to_project_key("/home/me/my.app v2") == "home-me-my-app-v2"

    def test_extract_folder(self):
        path = "/Users/me/.claude/projects/-Users-me-dev-api/abc.jsonl"
        assert extract_project_folder(path) == "-Users-me-dev-api"
        assert extract_project_folder("/tmp/abc.jsonl") is None

    def test_transcript_wins_over_cwd(self):
        payload = {
            "transcript_path": "/Users/me/.claude/projects/-Users-me-dev-api/abc.jsonl",
            "cwd": "/Users/me/dev/other",
        }
        assert project_key_from_payload(payload) == "Users-me-dev-api"

    def test_cwd_fallback(self):
        assert project_key_from_payload({"cwd": "/Users/me/dev/api"}) == "Users-me-dev-api"

    def test_nothing(self):
        assert project_key_from_payload({}) is None


class TestProjectLabel:
    """Readable names for speech."""

    @pytest.mark.parametrize(
        "payload,expected",
        [
            ({"cwd": "/Users/me/dev/api"}, "api"),
            ({"cwd": "/Users/me/dev/site.io"}, "site dot io"),
            ({"transcript_path": "/x/.claude/projects/-Users-me-dev-web/a.jsonl"}, "web"),
            ({}, DEFAULT_LABEL),
        ],
    )
    def test_label(self, payload, expected):
        assert project_label_from_payload(payload) == expected
