# src/env/loader.py

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from llm_stack.config import ModelConfig

from .schema import AgentProfile, EnvProfile, LoggingProfile, ModelProfile


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

PROJECT_ROOT = Path(__file__).resolve().parents[2]
CONFIG_ROOT = PROJECT_ROOT / "config"

# GitHub Actions sets CI=true; use that to relax certain checks there.
IS_CI = os.getenv("CI") == "true"

# Overrides the `profile` key of env.yaml when set.
PROFILE_ENV_VAR = "AGENT_ENV_PROFILE"

SUPPORTED_BACKENDS = ("llama_cpp",)


def _load_yaml(config_root: Path, name: str) -> Dict[str, Any]:
    """Load a YAML config file from the config directory."""
    path = config_root / name
    if not path.exists():
        raise FileNotFoundError(f"Missing config file: {path}")
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Expected mapping at top of {path}, got {type(data)}")
    return data


def _select_profile(
    env_cfg: Dict[str, Any],
    override: Optional[str] = None,
) -> Tuple[str, Dict[str, Any]]:
    """Return (active_profile_name, active_profile_mapping)."""
    profile_name = override or os.getenv(PROFILE_ENV_VAR) or env_cfg.get("profile")
    if not profile_name:
        raise ValueError("env.yaml must define a 'profile' key.")
    profiles = env_cfg.get("profiles")
    if not isinstance(profiles, dict):
        raise ValueError("env.yaml must define a 'profiles' mapping.")
    if profile_name not in profiles:
        raise KeyError(f"Profile '{profile_name}' not found in env.yaml profiles.")
    return profile_name, profiles[profile_name]


def _resolve_path(raw: str, base: Path) -> str:
    path = Path(raw).expanduser()
    if not path.is_absolute():
        path = base / path
    return str(path)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_environment(
    profile: Optional[str] = None,
    *,
    config_root: Optional[Path] = None,
    check_files: bool = True,
) -> EnvProfile:
    """
    Main entry point: returns a fully resolved EnvProfile.

    Reads env.yaml, models.yaml and agent.yaml from `config_root`
    (default: <project>/config). Relative paths inside them resolve
    against the parent of the config directory.
    """
    config_root = config_root or CONFIG_ROOT
    base = config_root.resolve().parent

    env_cfg = _load_yaml(config_root, "env.yaml")
    models_cfg = _load_yaml(config_root, "models.yaml")
    agent_cfg = _load_yaml(config_root, "agent.yaml")

    active_profile_name, active_profile = _select_profile(env_cfg, profile)
    model_profile_name = active_profile["model_profile"]
    agent_profile_name = active_profile["agent_profile"]

    # Resolve model profile
    model_profiles = models_cfg.get("model_profiles") or {}
    if model_profile_name not in model_profiles:
        raise KeyError(f"Model profile '{model_profile_name}' not found in models.yaml")
    model_profile_raw = model_profiles[model_profile_name]

    models_dict: Dict[str, ModelConfig] = {}
    for name, cfg in (model_profile_raw.get("models") or {}).items():
        cfg = dict(cfg)
        cfg["path"] = _resolve_path(cfg["path"], base)
        models_dict[name] = ModelConfig.from_dict(cfg)
    model_profile = ModelProfile(
        name=model_profile_name,
        backend=model_profile_raw["backend"],
        models=models_dict,
    )

    # Resolve agent profile
    agent_profiles = agent_cfg.get("agent_profiles") or {}
    if agent_profile_name not in agent_profiles:
        raise KeyError(f"Agent profile '{agent_profile_name}' not found in agent.yaml")
    agent_raw = agent_profiles[agent_profile_name]
    agent_profile = AgentProfile(
        name=agent_profile_name,
        agent_name=agent_raw.get("name", agent_profile_name),
        identity=agent_raw["identity"],
        context_margin=int(agent_raw.get("context_margin", 256)),
    )

    # Logging block (optional)
    log_raw = active_profile.get("logging") or env_cfg.get("logging") or {}
    logging_profile = LoggingProfile(
        level=str(log_raw.get("level", "INFO")),
        events_log=_resolve_path(log_raw["events_log"], base) if log_raw.get("events_log") else None,
        llm_log_dir=_resolve_path(log_raw["llm_log_dir"], base) if log_raw.get("llm_log_dir") else None,
    )

    _validate_env(model_profile, agent_profile, check_files=check_files)

    return EnvProfile(
        name=active_profile_name,
        model_profile=model_profile,
        agent_profile=agent_profile,
        logging=logging_profile,
    )


def _validate_env(
    models: ModelProfile,
    agent: AgentProfile,
    *,
    check_files: bool = True,
) -> None:
    """Minimal sanity checks for the environment."""
    if models.backend not in SUPPORTED_BACKENDS:
        raise ValueError(f"Unsupported backend: {models.backend}")
    if "primary" not in models.models:
        raise ValueError(f"Model profile '{models.name}' must define a 'primary' model.")

    if not agent.identity.strip():
        raise ValueError(f"Agent profile '{agent.name}' has an empty identity.")
    if agent.context_margin < 0:
        raise ValueError("context_margin must be >= 0")

    primary = models.primary
    if agent.context_margin >= primary.context_length:
        raise ValueError(
            f"context_margin {agent.context_margin} leaves no room in a "
            f"{primary.context_length}-token window"
        )
    if agent.context_margin < primary.max_tokens:
        raise ValueError(
            f"context_margin {agent.context_margin} of agent profile '{agent.name}' "
            f"is smaller than max_tokens {primary.max_tokens} of the primary model"
        )

    if not check_files:
        return

    # confirm model files exist on disk
    for name, cfg in models.models.items():
        if not Path(cfg.path).exists():
            if IS_CI:
                # CI runners have no local GGUF files; let the backend decide.
                continue
            raise FileNotFoundError(f"Missing model file for {name}: {cfg.path}")
