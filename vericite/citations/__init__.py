"""Citation style reformatting."""
