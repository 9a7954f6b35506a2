"""eBay marketplace adapter package."""

from rarefind.marketplaces.ebay.adapter import EbayAdapter
from rarefind.marketplaces.ebay.client import EbayClient

__all__ = ["EbayAdapter", "EbayClient"]
