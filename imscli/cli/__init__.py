"""Command line interface for ims-cli."""
