"""CLI module for chatjournal."""
