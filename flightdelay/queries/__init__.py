"""
SQL accessors. Every function takes the Database as its first argument and
returns plain dict rows keyed by column name.
"""
