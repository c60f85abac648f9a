"""Services used by the conversation graph."""
