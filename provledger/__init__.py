"""
provledger - PROV provenance records on a versioned key/value ledger.

Builds W3C PROV documents for content hashes, stores them in a ledger,
and reads them back together with their version history.
"""

__version__ = "0.1.0"
