"""Clients for the remote LLM gateway."""
