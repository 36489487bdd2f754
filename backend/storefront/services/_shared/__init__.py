"""Building blocks shared by every service: errors, ports, base classes."""
