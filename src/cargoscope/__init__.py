"""CargoScope - test discovery and live test runs for cargo workspaces."""
