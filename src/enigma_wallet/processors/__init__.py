from __future__ import annotations

from .price_enricher import enrich_balance

__all__ = ["enrich_balance"]
