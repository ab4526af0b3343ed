"""Routing — per-method path-pattern trie with literal-first matching.

Routes are registered during setup and compiled into an immutable
lookup structure when the app freezes.
"""
