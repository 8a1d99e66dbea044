"""Infrastructure layer: the text-format and relational storage backends.

This layer depends on stdlib and third-party libs (SQLAlchemy, pydantic).
It may import from domain, but never from services, commands, or output.
"""
