"""Host-framework adapters and helpers used by the OIDC client."""
