"""Utility entry points for supplementary claiming tooling."""

from .replay_track import replay_samples

__all__ = ["replay_samples"]
