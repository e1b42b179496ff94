# path: src/llm_stack/__init__.py

"""Backend contract, ChatML template, token estimation and the llama.cpp backend."""
