"""Adapters – data-source and web-framework integrations."""
