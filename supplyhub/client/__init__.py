from supplyhub.client.api_client import ApiClientError, MarketplaceClient
from supplyhub.client.cart import Cart, CartLine, partition_lines
from supplyhub.client.polling import LocationReporter, Poller, TrackingPoller

__all__ = [
    "ApiClientError",
    "MarketplaceClient",
    "Cart",
    "CartLine",
    "partition_lines",
    "Poller",
    "TrackingPoller",
    "LocationReporter",
]
