"""Relay for end-user phishing reports to the PhishLabs incident API."""

__version__ = "1.0.0"
