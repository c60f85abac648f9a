"""LangGraph state machine for the reason/act loop."""
