"""Interfaces/abstracciones del Core.

Por qué:
- Define contratos (Protocol) que implementan adaptadores concretos.
- Permite invertir dependencias: el Core depende de abstracciones.
"""

from core.interfaces.collaborators import ComplianceLogger, InvestigationAnalyzer
from core.interfaces.persistence import InvestigationStore
from core.interfaces.provider import InvestigationProvider, ProviderBackend

__all__ = [
    "ComplianceLogger",
    "InvestigationAnalyzer",
    "InvestigationProvider",
    "InvestigationStore",
    "ProviderBackend",
]
