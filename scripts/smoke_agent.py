# scripts/smoke_agent.py

from __future__ import annotations

import sys
import time
from pathlib import Path

# ---------------------------------------------------------------------------
# Make sure src/ is on sys.path so imports like `agent` and `llm_stack` work
# when running this script directly from the project root.
# ---------------------------------------------------------------------------

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_ROOT = PROJECT_ROOT / "src"

if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from agent.bootstrap import build_agent_runtime
from env.loader import load_environment
from runtime.conversation import converse


def main() -> int:
    env = load_environment(sys.argv[1] if len(sys.argv) > 1 else None)
    primary = env.model_profile.primary

    print("=== EnvProfile ===")
    print(f"Active env profile : {env.name}")
    print(f"Model profile      : {env.model_profile.name}")
    print(f"Backend            : {env.model_profile.backend}")
    print(f"Primary model path : {primary.path}")
    print(f"Context length     : {primary.context_length}")
    print(f"Agent identity     : {env.agent_profile.identity}")
    print()

    with build_agent_runtime(env) as rt:
        for question in ("Hello! /no_think", "What did I just say? /no_think"):
            start = time.perf_counter()
            outcome = converse(rt.agent, question, rt.bus)
            elapsed = time.perf_counter() - start

            print(f"you   > {question}")
            if not outcome.ok:
                print(f"[FAIL] {outcome.kind.value}: {outcome.hint}")
                print(f"       {outcome.error}")
                return 1
            print(f"agent > {outcome.reply}")
            print(f"        ({elapsed:.3f} s, history={len(rt.agent.history)})\n")

    print("Smoke test completed without hard failures.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
