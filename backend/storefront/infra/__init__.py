"""Adapters implementing the service-layer ports (Redis, JWT, OAuth2 HTTP)."""
