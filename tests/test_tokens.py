# tests/test_tokens.py

from __future__ import annotations

import math

from llm_stack.chat_template import build_prompt
from llm_stack.tokens import BYTES_PER_TOKEN, estimate_prompt_tokens, estimate_tokens


def test_empty_text_counts_as_one() -> None:
    assert estimate_tokens("") == 1


def test_estimate_never_below_byte_bound() -> None:
    samples = [
        "You are terse.",
        "The quick brown fox jumps over the lazy dog.",
        "日本語のテキストも数えます",
        "<|im_start|>user\nhello<|im_end|>\n",
    ]
    for text in samples:
        assert estimate_tokens(text) >= math.ceil(len(text.encode("utf-8")) / BYTES_PER_TOKEN)


def test_punctuation_heavy_text_uses_segment_count() -> None:
    text = "!?" * 20  # 40 bytes, 40 single-symbol segments

    assert estimate_tokens(text) == 40


def test_long_digit_runs_are_split() -> None:
    # 12 digits -> 4 groups of three; bytes give 4 as well
    assert estimate_tokens("123456789012") == 4


def test_estimate_grows_with_history() -> None:
    short = build_prompt("id", [], pending_user="hi")
    long = build_prompt("id", [("user", "hello there " * 20), ("assistant", "ok")], pending_user="hi")

    assert estimate_prompt_tokens(long) > estimate_prompt_tokens(short)


def test_exact_counter_takes_precedence() -> None:
    assert estimate_prompt_tokens("whatever", counter=lambda text: 3) == 3
    assert estimate_prompt_tokens("whatever", counter=lambda text: 0) == 1
