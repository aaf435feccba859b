"""
Job table extraction pipeline for README documents.

Parses HTML and Markdown job tables, turns rows into normalized job
postings and harmonizes them with page-level context.
"""

__version__ = "1.0.0"
