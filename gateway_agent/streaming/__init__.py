"""Decoding of the gateway event stream."""
