# src/llm_stack/backend_llamacpp.py

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, List, Optional

from llama_cpp import Llama

from .config import ModelConfig
from .errors import (
    BackendUnavailable,
    ContextWindowOverflow,
    GenerationFailed,
    TokenizationFailed,
)

logger = logging.getLogger(__name__)


class LlamaCppBackend:
    """LLMBackend implementation using llama.cpp local inference (GGUF).

    Supports two construction styles:

    1) Preferred:
        backend = LlamaCppBackend(config=model_config)

       where `model_config` is a ModelConfig from models.yaml.

    2) Direct kwargs:
        backend = LlamaCppBackend(
            model_path="path/to/model.gguf",
            context_length=4096,
        )

    The model handle belongs to this instance only. close() (or leaving a
    `with` block) releases it; there is no process-wide model singleton.
    """

    def __init__(
        self,
        config: Optional[ModelConfig] = None,
        *,
        model_path: Optional[str] = None,
        context_length: Optional[int] = None,
    ) -> None:
        if config is None:
            if model_path is None:
                raise ValueError(
                    "LlamaCppBackend requires either `config` or `model_path`."
                )
            config = ModelConfig(
                path=model_path,
                context_length=context_length or 4096,
            )
        self._config = config

        path = Path(config.path)
        if not path.exists():
            raise BackendUnavailable(f"Missing model file: {path}")

        # If gpu_layers not set, offload all layers and let llama.cpp
        # place as many as VRAM allows.
        gpu_layers = 9999 if config.gpu_layers is None else config.gpu_layers

        # Use all but 1 CPU core if not specified
        default_threads = max(1, (os.cpu_count() or 1) - 1)

        try:
            self._llm: Optional[Any] = Llama(
                model_path=str(path),
                n_ctx=config.context_length,
                n_gpu_layers=gpu_layers,
                n_threads=config.n_threads or default_threads,
                n_batch=config.n_batch or 512,
                seed=config.seed,
                verbose=False,
            )
        except Exception as exc:
            raise BackendUnavailable(f"Failed to load model {path}: {exc}") from exc

        logger.info(
            "Loaded GGUF model %s (n_ctx=%d, gpu_layers=%d)",
            path.name,
            self.max_context_length(),
            gpu_layers,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Release the model. Safe to call more than once."""
        llm, self._llm = self._llm, None
        if llm is None:
            return
        closer = getattr(llm, "close", None)
        if callable(closer):
            closer()
        logger.debug("Closed llama.cpp backend for %s", self._config.path)

    def __enter__(self) -> "LlamaCppBackend":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _require_llm(self) -> Any:
        if self._llm is None:
            raise BackendUnavailable("llama.cpp backend has been closed")
        return self._llm

    # ------------------------------------------------------------------
    # LLMBackend protocol
    # ------------------------------------------------------------------

    @property
    def config(self) -> ModelConfig:
        return self._config

    def max_context_length(self) -> int:
        if self._llm is None:
            return self._config.context_length
        return int(self._llm.n_ctx())

    def clear_cache(self) -> None:
        # reset() drops the evaluated token prefix, so the next completion
        # re-evaluates the whole prompt instead of matching a cached prefix.
        if self._llm is not None:
            self._llm.reset()

    def count_tokens(self, text: str) -> int:
        return len(self._tokenize(text))

    def reply_budget(self) -> int:
        """max_tokens from the config; generate() refuses prompts that leave less."""
        return self._config.max_tokens

    def generate(self, prompt: str) -> str:
        llm = self._require_llm()

        prompt_tokens = len(self._tokenize(prompt))
        limit = self.max_context_length()
        if prompt_tokens + self._config.max_tokens > limit:
            raise ContextWindowOverflow(prompt_tokens=prompt_tokens, limit=limit)

        try:
            out = llm.create_completion(
                prompt,
                max_tokens=self._config.max_tokens,
                temperature=self._config.temperature,
                top_p=self._config.top_p,
                top_k=self._config.top_k,
                repeat_penalty=self._config.repeat_penalty,
                stop=list(self._config.stop),
            )
        except Exception as exc:
            raise GenerationFailed(f"llama.cpp inference failed: {exc}") from exc

        # llama_cpp returns an OpenAI-style completion dict
        try:
            text = out["choices"][0]["text"]
        except (KeyError, IndexError, TypeError) as exc:
            raise GenerationFailed(f"Malformed completion payload: {out!r}") from exc

        text = (text or "").strip()
        if not text:
            raise GenerationFailed("Model produced an empty reply")
        return text

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _tokenize(self, text: str) -> List[int]:
        llm = self._require_llm()
        try:
            # special=True so ChatML markers count as the single tokens
            # the completion call will see.
            return list(llm.tokenize(text.encode("utf-8"), add_bos=True, special=True))
        except Exception as exc:
            raise TokenizationFailed(f"Could not tokenize prompt: {exc}") from exc
