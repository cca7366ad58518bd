"""Conversations feature: owner-scoped storage of conversation trees.

A conversation is stored as one ``conversations`` row plus its ``nodes`` and
``edges``. Saves replace the whole graph.
"""
