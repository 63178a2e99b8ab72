"""
Civic Triage - ticket lifecycle and multi-role triage workflow
"""

__version__ = "1.0.0"
