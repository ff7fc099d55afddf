"""
Flight delay manager: CRUD over flights plus delay/weather analytics,
with all heavy lifting left to PostgreSQL routines and SQL.
"""
__version__ = "1.0.0"
