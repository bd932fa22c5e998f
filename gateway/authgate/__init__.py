"""
Tenant Auth Gateway

HTTP gateway for the account lifecycle of tenant applications:
tenant-gated registration, password sign-in with an HTTP-only session
cookie, sign-out, and the email-driven password reset flow.

Packages:
- auth: lifecycle orchestration, session cookie, routes
- providers: identity provider interface and GoTrue backend
- tenants: tenant directory interface and PostgREST backend
"""

__version__ = "1.0.0"
