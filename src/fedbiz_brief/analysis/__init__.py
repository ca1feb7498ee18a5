# ABOUTME: Analysis module for brief narrative generation.
# ABOUTME: Exports analyzer strategies and the settings-driven factory.

from fedbiz_brief.analysis.analyzer import (
    AnalysisContext,
    Analyzer,
    GeminiAnalyzer,
    RuleBasedAnalyzer,
    get_analyzer,
)

__all__ = ["AnalysisContext", "Analyzer", "GeminiAnalyzer", "RuleBasedAnalyzer", "get_analyzer"]
