"""Command-line interface for the coverage planner."""
