# path: src/runtime/__init__.py

"""
Runtime wiring package.

Holds the conversation entry point that transports call into:

    from runtime.conversation import converse
    outcome = converse(agent, "Hello!")
"""
