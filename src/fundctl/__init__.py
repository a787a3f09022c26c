"""fundctl: verify recipient wallets were funded by known donors, and top up the rest."""

__version__ = "0.3.0"
