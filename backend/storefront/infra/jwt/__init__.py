"""Flask-JWT-Extended adapters."""
