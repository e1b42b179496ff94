#"src/agent/state.py"

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional

from llm_stack.errors import ErrorKind


class TurnPhase(Enum):
    """
    Phases of a single Agent.submit() call.

        IDLE -> SERIALIZING -> BUDGET_CHECKED -> GENERATING -> COMMITTING -> IDLE

    Failure exits:
    - from BUDGET_CHECKED back to IDLE (context limit, nothing mutated)
    - from GENERATING back to IDLE (backend error, nothing mutated)

    COMMITTING is a pure in-memory append and always reaches IDLE.
    """

    IDLE = auto()
    SERIALIZING = auto()
    BUDGET_CHECKED = auto()
    GENERATING = auto()
    COMMITTING = auto()


@dataclass
class TurnState:
    """
    Bookkeeping for the most recent submit() call.

    Fields
    ------
    turn_id:
        Correlation id shared by every monitoring event of the turn.

    phase:
        Phase the turn is in, or the phase it failed out of.

    estimated_tokens:
        Prompt estimate computed during the budget check, if reached.

    limit:
        Backend context length observed during the budget check.

    error_kind:
        Failure kind when the turn did not commit.
    """

    turn_id: str
    phase: TurnPhase = TurnPhase.IDLE
    estimated_tokens: Optional[int] = None
    limit: Optional[int] = None
    error_kind: Optional[ErrorKind] = None

    @property
    def committed(self) -> bool:
        return self.phase is TurnPhase.COMMITTING and self.error_kind is None
