"""Infrastructure Layer.

Adapters that connect domain ports to third-party geometry and table
libraries. All functions here return domain Value Objects or library
objects rebuilt from them.
"""
