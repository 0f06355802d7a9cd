"""Shared pytest fixtures and configuration for the cmdtree test suite.

Guidelines
----------
* No terminal interaction: ``questionary`` is always mocked or hidden.
* Core tests must be pure, with no side effects.
* Tests must not depend on OS state; environment fallbacks are passed in
  explicitly.
* Log assertions read ``context.log_history``, not captured stderr.
"""

from __future__ import annotations
