"""Utility helpers."""

from competitor_intel.utils.helpers import normalize_domain, utcnow

__all__ = ["normalize_domain", "utcnow"]
