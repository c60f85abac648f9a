"""HTTP API for driving conversations."""
