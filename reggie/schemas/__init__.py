"""JSON Schemas for registry response bodies."""
