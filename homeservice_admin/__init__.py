"""Telegram admin bot for the home-service marketplace catalog"""

__version__ = "0.1.0"
