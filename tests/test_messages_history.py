# tests/test_messages_history.py

from __future__ import annotations

from dataclasses import FrozenInstanceError

import pytest

from agent.messages import History, Message, Role


def make_history(turns: int) -> History:
    history = History()
    for i in range(turns):
        history.append(Message.user(f"q{i}"))
        history.append(Message.assistant(f"a{i}"))
    return history


def test_message_is_immutable() -> None:
    msg = Message.user("hi")
    with pytest.raises(FrozenInstanceError):
        msg.content = "changed"  # type: ignore[misc]


def test_message_dict_shape() -> None:
    assert Message.assistant("4").to_dict() == {"role": "assistant", "content": "4"}
    assert Message.from_dict({"role": "system", "content": "note"}) == Message.system("note")


@pytest.mark.parametrize(
    "data",
    [
        {"role": "function", "content": "x"},
        {"role": "user", "content": 42},
    ],
)
def test_message_from_dict_rejects_bad_input(data) -> None:
    with pytest.raises(ValueError):
        Message.from_dict(data)


def test_snapshot_does_not_alias() -> None:
    history = make_history(1)
    snap = history.snapshot()
    history.append(Message.user("later"))

    assert len(snap) == 2
    assert len(history) == 3


def test_as_pairs_uses_role_tags() -> None:
    assert make_history(1).as_pairs() == [("user", "q0"), ("assistant", "a0")]


def test_turn_count() -> None:
    assert make_history(3).turn_count == 3
    assert History().turn_count == 0


def test_truncate_keeps_last_turns() -> None:
    history = make_history(4)

    removed = history.truncate_turns(2)

    assert removed == 4
    assert [m.content for m in history] == ["q2", "a2", "q3", "a3"]


def test_truncate_zero_drops_conversation_keeps_system_notes() -> None:
    history = History([Message.system("note"), *make_history(2)])

    removed = history.truncate_turns(0)

    assert removed == 4
    assert list(history) == [Message.system("note")]
    assert history[0].role is Role.SYSTEM


def test_truncate_more_than_available_is_noop() -> None:
    history = make_history(2)

    assert history.truncate_turns(10) == 0
    assert len(history) == 4


def test_truncate_negative_rejected() -> None:
    with pytest.raises(ValueError):
        make_history(1).truncate_turns(-1)


def test_clear() -> None:
    history = make_history(2)
    history.clear()
    assert len(history) == 0
