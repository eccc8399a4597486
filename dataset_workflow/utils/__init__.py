"""Utility modules: cancellable waits and header/body parsing helpers."""
