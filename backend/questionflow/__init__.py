"""Question flow service: conditional questionnaires with validated navigation."""
