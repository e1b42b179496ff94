# tests/test_bootstrap.py

from __future__ import annotations

import json
from pathlib import Path

from agent.bootstrap import build_agent_runtime
from agent.messages import Message
from env.schema import AgentProfile, EnvProfile, LoggingProfile, ModelProfile
from llm_stack.config import ModelConfig
from llm_stack.testing.fakes import FakeBackend


def make_env(tmp_path: Path) -> EnvProfile:
    return EnvProfile(
        name="test",
        model_profile=ModelProfile(
            name="fake",
            backend="llama_cpp",
            models={"primary": ModelConfig(path=str(tmp_path / "unused.gguf"))},
        ),
        agent_profile=AgentProfile(
            name="terse",
            agent_name="terse-bot",
            identity="You are terse.",
            context_margin=64,
        ),
        logging=LoggingProfile(
            level="INFO",
            events_log=str(tmp_path / "logs" / "events.log"),
            llm_log_dir=str(tmp_path / "logs" / "llm"),
        ),
    )


def test_runtime_wires_agent_and_logs(tmp_path: Path) -> None:
    env = make_env(tmp_path)
    backend = FakeBackend(reply="4")

    with build_agent_runtime(env, backend=backend) as rt:
        assert rt.agent.name == "terse-bot"
        assert rt.agent.context_margin == 64
        assert rt.agent.submit("2+2?") == "4"

    lines = (tmp_path / "logs" / "events.log").read_text(encoding="utf-8").splitlines()
    types = [json.loads(line)["event_type"] for line in lines]
    assert types[0] == "TURN_STARTED"
    assert types[-1] == "TURN_COMMITTED"
    assert len(list((tmp_path / "logs" / "llm").glob("*.json"))) == 1


def test_runtime_resumes_history(tmp_path: Path) -> None:
    env = make_env(tmp_path)
    history = [Message.user("earlier"), Message.assistant("reply")]

    with build_agent_runtime(env, backend=FakeBackend(), history=history) as rt:
        assert rt.agent.history == tuple(history)


def test_close_calls_backend_close(tmp_path: Path) -> None:
    class ClosableBackend(FakeBackend):
        closed = False

        def close(self) -> None:
            self.closed = True

    backend = ClosableBackend()
    rt = build_agent_runtime(make_env(tmp_path), backend=backend)
    rt.close()

    assert backend.closed
