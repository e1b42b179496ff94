# tests/test_transcript.py

from __future__ import annotations

import json
from pathlib import Path

import pytest

from agent.agent import Agent
from agent.messages import Message
from agent.transcript import load_transcript, save_transcript
from llm_stack.testing.fakes import FakeBackend


def test_save_and_resume_conversation(tmp_path: Path) -> None:
    agent = Agent("You are terse.", FakeBackend(reply="4"), name="terse")
    agent.submit("2+2?")
    path = save_transcript(agent, tmp_path / "sessions" / "t.json")

    transcript = load_transcript(path)
    assert transcript.agent == "terse"
    assert transcript.identity == "You are terse."
    assert transcript.messages == [Message.user("2+2?"), Message.assistant("4")]

    backend = FakeBackend(reply="again")
    resumed = Agent(transcript.identity, backend, history=transcript.messages)
    resumed.submit("once more")

    assert "2+2?" in backend.prompts[-1]
    assert len(resumed.history) == 4


def test_saved_file_is_plain_json(tmp_path: Path) -> None:
    agent = Agent("You are terse.", FakeBackend(reply="ok"))
    agent.submit("hi")
    path = save_transcript(agent, tmp_path / "t.json")

    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["messages"][0] == {"role": "user", "content": "hi"}
    assert isinstance(data["saved_at"], float)


def test_load_missing_transcript(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_transcript(tmp_path / "nope.json")


def test_load_rejects_non_mapping(tmp_path: Path) -> None:
    path = tmp_path / "bad.json"
    path.write_text("[1, 2, 3]", encoding="utf-8")
    with pytest.raises(ValueError):
        load_transcript(path)
