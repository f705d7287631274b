"""
Authentication application.

Provides the email-based User model that notifications are addressed to.

Usage:
    from authentication.models import User
"""
