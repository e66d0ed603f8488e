"""Process-wide helpers shared by the API server and the CLI."""
