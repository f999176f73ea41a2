"""Typed wire shapes of the client protocol and each backend dialect."""

from . import claude, openai, responses


__all__ = ["claude", "openai", "responses"]
