"""
LBK points service: registration, JWT login and point transfers.
"""

__version__ = "1.0.0"
