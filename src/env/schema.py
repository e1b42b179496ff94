# EnvProfile, ModelProfile, AgentProfile dataclasses
# src/env/schema.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

from llm_stack.config import ModelConfig


@dataclass
class ModelProfile:
    """Collects the model files served by one backend under a profile name."""
    name: str
    backend: str                    # currently only "llama_cpp"
    models: Dict[str, ModelConfig]  # keys: "primary", ...

    @property
    def primary(self) -> ModelConfig:
        return self.models["primary"]


@dataclass
class AgentProfile:
    """Conversational identity and budget settings for an Agent."""
    name: str
    agent_name: str
    identity: str
    context_margin: int = 256


@dataclass
class LoggingProfile:
    """Where logs go. Paths are relative to the project root unless absolute."""
    level: str = "INFO"
    events_log: Optional[str] = None   # JSONL monitoring events
    llm_log_dir: Optional[str] = None  # one JSON per backend call


@dataclass
class EnvProfile:
    """Resolved environment for one active profile."""
    name: str
    model_profile: ModelProfile
    agent_profile: AgentProfile
    logging: LoggingProfile
