"""Application services and security components."""
