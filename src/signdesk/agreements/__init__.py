"""Client engagement agreements."""
