"""
gradegate - class progression and access control for grade-level curricula.

Subpackages:
- schemas: Pydantic models for class definitions and per-user access records
- classroom: catalog, score aggregation, persistence and the progression engine
- utils: configuration and logging setup
"""

__version__ = "0.1.0"
