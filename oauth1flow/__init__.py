"""oauth1flow - OAuth 1.0a three-legged authorization flow manager.

Drives temporary-credential acquisition, user authorization through the
system browser, verifier capture on a loopback listener and the
access-token exchange, then signs authorized requests.
"""

__version__ = "0.1.0"
