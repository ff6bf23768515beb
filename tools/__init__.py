"""Command line tools for inspecting state files."""
