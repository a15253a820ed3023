"""
Connectors Package - Clients for external ledger systems
"""

from .tally_connector import TallyConnector, TallyError

__all__ = ['TallyConnector', 'TallyError']
