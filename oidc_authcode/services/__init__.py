"""Services for the OIDC authorization code flow."""
