"""
CLI Interface - Command-line tools for FiscalRAG.

Provides commands for:
- Ranked article search per edition
- Edition intent analysis
- Grounded answers and 2025/2026 comparisons
- Rule table validation
"""

from .main import app, main

__all__ = ["app", "main"]
