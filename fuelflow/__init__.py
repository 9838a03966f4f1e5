"""
FuelFlow - petrol station accounting client.

Session/authentication and currency services for the FuelFlow backend.
"""

__version__ = "0.1.0"

from .context import AppContext, use_auth, use_currency, use_station

__all__ = ["AppContext", "use_auth", "use_currency", "use_station", "__version__"]
