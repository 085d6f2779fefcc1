"""Shared helpers: identifiers, name sanitization and non-finite-safe math."""
