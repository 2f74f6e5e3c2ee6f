"""Shokulab contract negotiation core"""

__version__ = "0.1.0"
