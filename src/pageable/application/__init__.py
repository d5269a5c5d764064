"""Application layer – list-query parsing and execution."""
