"""Mini URL: a URL-shortening service with password-protected links."""

__version__ = "1.0.0"
