"""Virtual environment location and command execution."""
