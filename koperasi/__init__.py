"""
Koperasi Governance Core

Meeting and voting subsystem for cooperative governance: member meetings,
agenda items, attendance and one-vote-per-member tallies with audit trails.
"""

__version__ = "1.0.0"
