"""API route modules."""
from answer_engine.routes import answer_keys, sessions

__all__ = ["answer_keys", "sessions"]
