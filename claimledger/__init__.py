"""claimledger: local daily-claim streak and rewards ledger."""

__version__ = "0.1.0"
