"""Command line interface for NeuroStudio."""
