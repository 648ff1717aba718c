"""
Portfolio Agent - conversational Q&A about the portfolio owner
"""

__version__ = "1.0.0"
