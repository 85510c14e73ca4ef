"""Mortgage (KPR) simulation."""

from .calculator import BANKS, resolve_bank, simulate, tenor_options

__all__ = ["BANKS", "resolve_bank", "simulate", "tenor_options"]
