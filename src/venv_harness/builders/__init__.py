"""Package build steps."""
