"""Policy configuration access."""

from nyasawave.policy.resolver import PolicyResolver

__all__ = ["PolicyResolver"]
