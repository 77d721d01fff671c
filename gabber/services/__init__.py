"""
Services module for external API integrations in the Gabber SDK.

Key components:
- api_client: Async client for the Gabber REST API. It exchanges a bearer
  credential for LiveKit connection details and reads voices, personas,
  scenarios and session history, using Pydantic models for every response.

Usage examples:
```python
from gabber.services.api_client import GabberApiClient
from gabber.models import SessionStartRequest

async def start():
    async with GabberApiClient(token="my-api-token") as client:
        response = await client.start_session(SessionStartRequest(persona="p-1"))
        print(response.connection_details.url)
```
"""

from gabber.services.api_client import GabberApiClient, GabberApiError
