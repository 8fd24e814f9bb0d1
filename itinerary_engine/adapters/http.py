"""Shared HTTP helper for the Google Maps Platform adapters."""

from typing import Any

import httpx

from itinerary_engine.adapters.exceptions import (
    CollaboratorConnectionError,
    CollaboratorResponseError,
    CollaboratorTimeoutError,
)


def get_json(client: httpx.Client, url: str, params: dict[str, Any]) -> dict[str, Any]:
    """GET ``url`` and return the decoded JSON body.

    Raises:
        CollaboratorTimeoutError: If the request times out.
        CollaboratorConnectionError: If the service cannot be reached.
        CollaboratorResponseError: For error statuses or non-JSON bodies.
    """
    try:
        response = client.get(url, params=params)
        response.raise_for_status()
        data = response.json()
    except httpx.TimeoutException as e:
        raise CollaboratorTimeoutError(f"Request to {url} timed out: {e}") from e
    except httpx.ConnectError as e:
        raise CollaboratorConnectionError(f"Unable to connect to {url}: {e}") from e
    except httpx.HTTPStatusError as e:
        raise CollaboratorResponseError(
            f"{url} returned error {e.response.status_code}"
        ) from e
    except ValueError as e:
        raise CollaboratorResponseError(f"{url} returned a non-JSON body") from e

    if not isinstance(data, dict):
        raise CollaboratorResponseError(f"{url} returned an unexpected body")
    return data
