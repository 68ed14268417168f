"""Clients for the upstream services the pipeline consumes (GitHub, inference)."""
