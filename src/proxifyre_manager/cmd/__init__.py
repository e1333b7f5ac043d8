"""Command line interface modules.

This package provides the terminal front end of the manager:
- Showing and editing the service configuration
- Confirming destructive actions
- Driving the service lifecycle
- Error reporting

The command modules hold no business rules; they call into the core and
print its results.
"""
