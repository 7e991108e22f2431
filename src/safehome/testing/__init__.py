"""Test helpers: deterministic clock and seed data."""

from .clock import ManualClock
from .fixtures import SeededHome, seed_home

__all__ = ['ManualClock', 'SeededHome', 'seed_home']
