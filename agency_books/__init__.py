"""
Agency Books - Source Package

A small bookkeeping assistant for a single-operator agency: record income
and expenses, see where the money goes, and get a short AI-written
financial summary.

DESIGN PRINCIPLES:
1. The transaction list is the single source of truth
2. Every statistic is recomputed from the full list
3. Corrupt local data degrades to "no data", never to a crash
4. The AI summary is a cached, replaceable artifact
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Agency Books Team"
