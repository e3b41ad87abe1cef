"""chartkit - Parsing and timing services."""
