"""Settings, logging and persistence for the crawler."""
