"""Core utilities and shared infrastructure.

- config: Configuration loading and validation
- constants: Endpoint paths, polling defaults, header names
- exceptions: Workflow exception hierarchy
"""
