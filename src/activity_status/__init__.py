"""
Activity Status - aggregated personal activity feed.

Polls GitHub commit feeds, the GitHub events API and RSS feeds, merges the
results into a deduplicated history stamped with location context, and serves a
cached status document over HTTP.
"""

__version__ = "0.1.0"
