"""
Crate list discovery and repository mirrors.

Collects the crates a corpus-testing pipeline builds from a curated
GitHub list, the crates.io registry and a local list, and keeps local
mirrors of the GitHub repositories among them.
"""

__version__ = "1.0.0"
