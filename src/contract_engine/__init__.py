"""
Contract Engine - validation, merge, repair and analytics-driven
personalization of declarative app contracts.
"""

__version__ = "0.1.0"
