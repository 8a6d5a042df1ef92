"""
Building and enriching the assets tree.

This package is responsible for:
* Crawling the assets directory into a tree of sections and assets.
* Reading per-directory category configuration.
* Resolving license and version metadata from GitHub, GitLab and the crates.io dump.
"""
