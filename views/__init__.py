"""Derived views computed client-side from cached resource lists.

Nothing here talks to the network; every function takes the lists the query
cache already holds (pydantic records or plain camelCase dicts) and returns
new objects without touching its input.
"""
