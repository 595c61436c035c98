"""
FiscalRAG - Hybrid retrieval and version routing over the Congo tax code (CGI 2025 / 2026).

Example:
    >>> from fiscalrag.interfaces.api.deps import get_orchestrator
    >>> orchestrator = get_orchestrator()
    >>> response = await orchestrator.process("Quel est le taux de l'IBA ?")
"""

__version__ = "1.0.0"
__all__ = ["__version__"]
