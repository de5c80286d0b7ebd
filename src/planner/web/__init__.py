"""Web API for the coverage planner."""
