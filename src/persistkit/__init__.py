"""persistkit: a pluggable persistence engine.

Entity collections are loaded and saved as whole snapshots through a single
``DataStore`` abstraction, backed either by a flat file (JSON, XML, CSV) or by
a relational database (SQL Server, SQLite, PostgreSQL, MySQL). The backing
medium is selected at runtime from configuration and its provider is
discovered from plugin modules.
"""
