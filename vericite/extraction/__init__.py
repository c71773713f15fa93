"""Citation extraction from free text."""
