"""Sub-routers HTTP por feature (auth, users)."""
