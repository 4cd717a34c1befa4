"""Shared runtime primitives: context, errors, exit codes and process handling."""
