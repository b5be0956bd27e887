"""
Backfill package: one-shot bulk import of existing graph nodes.
"""
