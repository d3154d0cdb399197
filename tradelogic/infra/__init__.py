"""Settings, local state storage and the case archive."""
