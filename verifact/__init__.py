"""
VeriFact retrieval core.
Embeds claims and articles, stores them in a vector backend and ranks similar evidence.
"""

__version__ = "1.0.0"
