"""Crew roster importer application package."""
