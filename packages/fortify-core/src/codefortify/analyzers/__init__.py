from codefortify.analyzers.base import (
    Analyzer,
    AnalyzerConfig,
    CommandResult,
    ProjectFiles,
    ResultBuilder,
)
from codefortify.analyzers.registry import AnalyzerRegistry, RegisteredAnalyzer, default_registry

__all__ = [
    "Analyzer",
    "AnalyzerConfig",
    "AnalyzerRegistry",
    "CommandResult",
    "ProjectFiles",
    "RegisteredAnalyzer",
    "ResultBuilder",
    "default_registry",
]
