"""
Tenant Directory Package

Read access to pre-provisioned tenant records and the post-signup link
step that ties a tenant to its provider user.
"""

from .directory import PostgrestTenantDirectory, TenantDirectory, TenantDirectoryError

__all__ = [
    "TenantDirectory",
    "TenantDirectoryError",
    "PostgrestTenantDirectory",
]
