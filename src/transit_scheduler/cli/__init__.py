"""Command line interface for transit-scheduler."""
