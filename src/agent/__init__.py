# path: src/agent/__init__.py

"""Conversational agent: history, turn lifecycle, transcripts, bootstrap."""
