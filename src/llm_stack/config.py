# src/llm_stack/config.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .chat_template import STOP_MARKERS


@dataclass
class ModelConfig:
    """Model + sampling config used by LlamaCppBackend."""

    path: str

    # context / performance knobs
    context_length: int = 4096
    gpu_layers: Optional[int] = None
    n_threads: Optional[int] = None
    n_batch: Optional[int] = None

    # generation parameters
    max_tokens: int = 1000
    temperature: float = 0.7
    top_p: float = 0.95
    top_k: int = 40
    repeat_penalty: float = 1.1
    seed: int = 299792458

    # end-of-turn markers
    stop: List[str] = field(default_factory=lambda: list(STOP_MARKERS))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ModelConfig":
        """Convenience constructor from a plain dict (e.g. YAML)."""
        return cls(
            path=data["path"],
            context_length=int(data.get("context_length", 4096)),
            gpu_layers=data.get("gpu_layers"),
            n_threads=data.get("n_threads"),
            n_batch=data.get("n_batch"),
            max_tokens=int(data.get("max_tokens", 1000)),
            temperature=float(data.get("temperature", 0.7)),
            top_p=float(data.get("top_p", 0.95)),
            top_k=int(data.get("top_k", 40)),
            repeat_penalty=float(data.get("repeat_penalty", 1.1)),
            seed=int(data.get("seed", 299792458)),
            stop=list(data.get("stop") or STOP_MARKERS),
        )
