"""
Test LangSmith tracing setup.
"""

import os

import pytest

from english_coach.core.config import Settings
from english_coach.observability.langsmith import build_trace_config, initialize_langsmith


@pytest.fixture(autouse=True)
def clean_tracing_env(monkeypatch):
    for name in ("LANGSMITH_TRACING", "LANGSMITH_API_KEY", "LANGSMITH_ENDPOINT", "LANGSMITH_PROJECT"):
        monkeypatch.delenv(name, raising=False)


class TestInitializeLangsmith:
    """Environment export at startup."""

    def test_tracing_with_key_is_enabled(self):
        settings = Settings(LANGSMITH_TRACING=True, LANGSMITH_API_KEY="ls-key", LANGSMITH_PROJECT="coach-dev")

        assert initialize_langsmith(settings) is True
        assert os.environ["LANGSMITH_TRACING"] == "true"
        assert os.environ["LANGSMITH_API_KEY"] == "ls-key"
        assert os.environ["LANGSMITH_PROJECT"] == "coach-dev"

    def test_tracing_without_key_is_switched_off(self):
        settings = Settings(LANGSMITH_TRACING=True, LANGSMITH_API_KEY="  ")

        assert initialize_langsmith(settings) is False
        assert os.environ["LANGSMITH_TRACING"] == "false"
        assert "LANGSMITH_API_KEY" not in os.environ

    def test_tracing_off_by_default(self):
        settings = Settings(LANGSMITH_TRACING=False, LANGSMITH_API_KEY="")

        assert initialize_langsmith(settings) is False
        assert os.environ["LANGSMITH_TRACING"] == "false"


class TestBuildTraceConfig:
    """Per-reply runnable config."""

    def test_config_groups_by_session_and_labels_mode(self):
        config = build_trace_config("session-1", "pronunciation")

        assert config == {
            "configurable": {"thread_id": "session-1"},
            "run_name": "coach_reply:pronunciation",
            "tags": ["english-coach", "mode:pronunciation"],
            "metadata": {"session_id": "session-1", "mode": "pronunciation"},
        }

    def test_extra_tags_and_metadata_are_kept(self):
        config = build_trace_config("s", "grammar_lesson", tags=["retry"], metadata={"learner_id": 7})

        assert config["tags"][-1] == "retry"
        assert config["metadata"]["learner_id"] == 7
        assert config["metadata"]["mode"] == "grammar_lesson"
