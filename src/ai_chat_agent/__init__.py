"""
AI-Chat-Agent - conversation context management for LLM chat backends.
"""

__version__ = "0.1.0"
