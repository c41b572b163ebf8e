"""Browser session, dashboard DOM protocol and extraction."""
