"""Core domain primitives: exceptions and identifiers."""
