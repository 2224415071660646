"""SecAnalyze: LLM-backed security risk analysis for emails and images."""

__app_name__ = "secanalyze"
__version__ = "0.1.0"
