"""
Feature modules live under this package.

Each module owns its models, repository and admin routes, while reusing the
platform primitives (sessions, capability gate, audit, DB session).
"""
