"""Domain layer — definition model, loader, resolver and overload planner.

This layer depends only on stdlib and networkx (reference cycles).
It must never import from services, infrastructure, commands, or config.
"""
