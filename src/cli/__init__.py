"""Command-line front end for the task API."""
