"""Documents, signing and uploads."""
