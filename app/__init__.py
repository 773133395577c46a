"""
AI Portfolio Service - A thin FastAPI gateway for educational portfolio analysis.

Validates a submitted portfolio, optionally looks up live quotes from Finnhub,
and asks an OpenAI chat model for risk, diversification and outlook commentary.
"""

__version__ = "1.0.0"
