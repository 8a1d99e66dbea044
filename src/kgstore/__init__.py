"""kgstore: durable storage for a small labeled knowledge graph."""

__version__ = "0.1.0"
