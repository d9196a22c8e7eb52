"""apiweave — flatten relational JSON APIs into records.

Cache-first dispatch of templated GET requests, merged through ordered work
units into one execution context and projected into a flat record.
"""

__version__ = "0.1.0"
