"""Core services for releasetracker: catalog, GitHub client, sync and updates."""
