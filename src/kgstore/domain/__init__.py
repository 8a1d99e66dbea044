"""Domain layer: the graph model and its error taxonomy.

Pure Python and pydantic only. Must never import from infrastructure,
services, commands, or output.
"""
