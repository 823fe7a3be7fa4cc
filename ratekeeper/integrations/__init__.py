"""Optional adapters wiring a RateLimiter into web frameworks.

Import the framework-specific module directly (e.g.
``ratekeeper.integrations.fastapi``) so the framework stays optional.
"""
