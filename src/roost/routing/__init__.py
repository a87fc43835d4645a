"""Routing: ordered route table with first-match lookup.

Routes are registered during setup, grouped by prefix and middleware,
and compiled into an immutable router when the app freezes.
"""
