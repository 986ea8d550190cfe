"""Team check-in interview service."""
