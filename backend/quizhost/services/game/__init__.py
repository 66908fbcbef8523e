"""Match engine: pure transitions, the state machine and lifeline timing.

Transport concerns (HTTP, Socket.IO) live in the api package and the app
factory; nothing in here imports Flask request state.
"""
