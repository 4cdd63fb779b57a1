"""
Python client for interacting with the Colete Online REST API.

This package provides a `ColeteOnlineClient` class that handles
OAuth2 client‑credentials authentication against the Colete Online
authorization server and makes authenticated requests to the courier
API: placing and pricing orders, tracking order status, listing saved
addresses and courier services, and reading the account balance.

The client caches access tokens until the expiry embedded in the
token and automatically requests a new token when the current one
expires or is rejected by the API.

Examples
--------

```python
from coleteonline_api_client import ColeteOnlineClient

# Initialise the client with your app credentials
client = ColeteOnlineClient(
    client_id="YOUR_CLIENT_ID",
    client_secret="YOUR_CLIENT_SECRET",
    use_production=False,  # staging
    timeout=10,
)

# Walk the whole address book
for entry in client.iter_addresses():
    print(entry.contact.name, entry.address.city)
```

References
----------
The token endpoint is called with ``grant_type=client_credentials`` and
HTTP basic authentication carrying the client id and secret.  The
returned ``access_token`` is a JWT whose ``exp`` claim decides how long
it is cached.  See https://docs.api.colete-online.ro.
"""

from .client import ColeteOnlineClient
from .exceptions import (
    ColeteOnlineAPIError,
    ColeteOnlineAuthError,
    ColeteOnlineDecodeError,
    ColeteOnlineError,
    ColeteOnlineStatusError,
    ColeteOnlineTokenError,
    ColeteOnlineValidationError,
    TransportError,
)

__all__ = [
    "ColeteOnlineClient",
    "ColeteOnlineError",
    "ColeteOnlineAuthError",
    "ColeteOnlineAPIError",
    "ColeteOnlineValidationError",
    "ColeteOnlineStatusError",
    "ColeteOnlineDecodeError",
    "ColeteOnlineTokenError",
    "TransportError",
]
