"""
Battleplan AI
Decision engine and service for the computer-controlled side of Battleplan
"""

__version__ = "1.0.0"
