# config_local.example.py

"""
Example local overrides.

Usage:
  1) Copy this file to `config_local.py`
  2) Adjust values for your machine
  3) Never commit `config_local.py` (it is gitignored)

Prefer `.env` for anything environment-specific. This file should contain only safe overrides.
"""

# Example: start the console shell instead of the HTTP API
# CONSOLE_ENABLED = True

# Example: serve the API on another port
# PORT = 8080
