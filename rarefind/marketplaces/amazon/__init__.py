"""Amazon marketplace adapters: PA-API 5.0 and RapidAPI Real-Time Amazon Data."""

from rarefind.marketplaces.amazon.paapi_adapter import PAAPIAdapter
from rarefind.marketplaces.amazon.paapi_client import PAAPIClient
from rarefind.marketplaces.amazon.rapidapi_adapter import RapidAPIAdapter
from rarefind.marketplaces.amazon.rapidapi_client import RapidAPIClient
from rarefind.marketplaces.amazon.signing import RequestSigner, SigningCredentials

__all__ = [
    "PAAPIAdapter",
    "PAAPIClient",
    "RapidAPIAdapter",
    "RapidAPIClient",
    "RequestSigner",
    "SigningCredentials",
]
