"""Core client layers."""
