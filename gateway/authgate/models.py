"""
Data Models Module

This module defines Pydantic models for request/response validation
and the payloads exchanged with the upstream collaborators.

Models are organized by functional area:
- Request bodies accepted by the auth endpoints
- Identity provider payloads (sessions, auth results)
- Tenant directory records
- Response envelopes
"""

from typing import Optional, Dict

from pydantic import BaseModel, Field


# ============================================================================
# Request Models
# ============================================================================

class CredentialsRequest(BaseModel):
    """Email and password pair. Only presence is checked here; the provider owns the rules."""
    email: str = Field(..., description="Account email address")
    password: str = Field(..., description="Account password")


class RegisterRequest(CredentialsRequest):
    """Request model for tenant-gated registration."""


class SignInRequest(CredentialsRequest):
    """Request model for password sign-in."""


class ForgotPasswordRequest(BaseModel):
    """Request model for a password reset email."""
    email: str = Field(..., description="Account email address")


class UpdatePasswordRequest(BaseModel):
    """Request model for completing a password reset."""
    password: str = Field(..., description="New password")


# ============================================================================
# Identity Provider Models
# ============================================================================

class Session(BaseModel):
    """Session minted by the identity provider on successful authentication."""
    access_token: str = Field(..., description="Opaque access token", min_length=1)
    expires_in: int = Field(..., description="Lifetime in seconds", gt=0)
    token_type: str = Field(default="bearer", description="Token type")
    refresh_token: Optional[str] = Field(None, description="Refresh token if issued")


class AuthResult(BaseModel):
    """Payload returned by account creation and authentication."""
    user_id: Optional[str] = Field(None, description="Provider user identifier")
    email: Optional[str] = Field(None, description="Email the provider has on file")
    session: Optional[Session] = Field(None, description="Session, when one was issued")


# ============================================================================
# Tenant Directory Models
# ============================================================================

class TenantRecord(BaseModel):
    """Pre-provisioned tenant that unlocks self-registration for its email."""
    email: str = Field(..., description="Tenant email (unique key)")
    tenant_id: str = Field(..., description="Tenant identifier")
    user_id: Optional[str] = Field(None, description="Linked provider user, once registered")


# ============================================================================
# Response Models
# ============================================================================

class MessageResponse(BaseModel):
    """Every auth endpoint answers with a single human-readable message."""
    message: str = Field(..., description="Human-readable outcome")


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(..., description="Service health status")
    service: str = Field(..., description="Service name")
    version: str = Field(..., description="Service version")
    dependencies: Optional[Dict[str, str]] = Field(None, description="Dependency health status")
