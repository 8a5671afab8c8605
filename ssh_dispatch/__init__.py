"""Run a script on one or more hosts over SSH from a CI job."""

__version__ = "0.1.0"
