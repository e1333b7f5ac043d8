"""Core configuration and service control.

This package contains the parts of the manager with real invariants:
- Configuration data model and JSON wire format
- Lenient loading and atomic saving of the config file
- Index-based rule editing
- Fail-fast service lifecycle control through subprocess stages
- Exception hierarchy

The core never prints or prompts; the command-line package renders its
results and errors.
"""
