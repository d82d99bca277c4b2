"""changegov - change governance for commits, versions and changelogs."""

__version__ = "0.1.0"
