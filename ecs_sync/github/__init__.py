"""GitHub integrations (pull requests on the downstream repository)."""
