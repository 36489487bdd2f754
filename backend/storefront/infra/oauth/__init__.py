"""HTTP clients for third-party OAuth2 providers."""
