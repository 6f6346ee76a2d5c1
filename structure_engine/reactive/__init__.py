"""Reactive module - synchronous signals over snarfx observables."""

from .lib import Prop, Signal, computed, strict_equal

__all__ = ["Prop", "Signal", "computed", "strict_equal"]
