# middleware/security.py
"""
Security Middleware for Response Processing
"""

from flask import current_app


def security_headers(response):
    """Add the configured security headers to a response"""
    for header, value in current_app.config.get('SECURITY_HEADERS', {}).items():
        response.headers.setdefault(header, value)
    return response
