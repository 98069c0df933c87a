"""
MAIRE -- multi-model reasoning over configurable topologies.

Runs a prompt through an ordered set of language models arranged as a linear
chain, a double helix, an n-helix ring fan-out, or a star, and records every
step in a hash-referenced provenance ledger.
"""

__version__ = "0.1.0"
