"""StreamScope application entry point."""
