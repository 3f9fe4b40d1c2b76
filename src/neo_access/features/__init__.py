"""Feature modules of neo-access."""
