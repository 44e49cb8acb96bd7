"""
storecheck — ordered end-to-end checks for a shop REST API.

Registers a user, authenticates, walks the product catalog and the cart,
and asserts status codes, response schemas and auth rules along the way.
"""

__version__ = "0.1.0"
