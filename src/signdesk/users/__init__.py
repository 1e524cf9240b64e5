"""User profiles and credentials."""
