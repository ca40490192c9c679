"""
Query core: response parsing, criteria compilation, paged and batch search.
"""
