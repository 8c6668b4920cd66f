"""DevFlow authentication gateway.

Gatekeeping pipeline (security heuristics, sliding-window rate limiting,
structured logging and security headers) in front of the DevFlow auth handler.
"""

__version__ = "0.1.0"
