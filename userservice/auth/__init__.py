"""
Authentication and authorization for the user service.

This package provides:
- Credential verification and registration
- JWT token issuance and verification
- Role/permission catalog and authority derivation
- Policy-based access decisions and role assignment
"""
