"""
graphsync: keeps a search index in step with committed graph mutations.

Node creations, property/label changes and deletions observed in a graph
transaction are translated into bulk index/delete operations and sent to the
search engine after the transaction commits.
"""

__version__ = "0.1.0"
