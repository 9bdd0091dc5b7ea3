"""Lookup of policy IDs against the book.io collections registry."""

from __future__ import annotations

import logging
from typing import List, Optional

import requests

from .config import BOOKIO_COLLECTIONS_URL
from .errors import NotFoundError, TransportError
from .models import CollectionItem

logger = logging.getLogger("bookio_covers.registry")


def fetch_collections(
    session: requests.Session,
    url: str = BOOKIO_COLLECTIONS_URL,
    timeout: Optional[float] = None,
) -> List[CollectionItem]:
    """Fetch every collection known to book.io."""
    try:
        resp = session.get(url, timeout=timeout)
        logger.debug("GET %s -> %s", url, resp.status_code)
        resp.raise_for_status()
        payload = resp.json()
    except requests.RequestException as exc:
        status = exc.response.status_code if exc.response is not None else None
        raise TransportError(
            f"Failed to fetch book.io collections: {exc}", url=url, status_code=status
        ) from exc
    except ValueError as exc:
        raise TransportError(
            f"Could not decode book.io collections response: {exc}", url=url
        ) from exc

    data = payload.get("data") if isinstance(payload, dict) else None
    if not isinstance(data, list):
        raise TransportError("book.io collections response has no `data` list", url=url)
    try:
        return [CollectionItem.from_dict(item) for item in data if isinstance(item, dict)]
    except ValueError as exc:
        raise TransportError(str(exc), url=url) from exc


def verify_bookio_policy(
    policy_id: str,
    session: Optional[requests.Session] = None,
    url: str = BOOKIO_COLLECTIONS_URL,
    timeout: Optional[float] = None,
) -> CollectionItem:
    """Confirm that ``policy_id`` names a book.io collection.

    Returns the matching collection entry, raises :class:`NotFoundError` when
    no entry matches exactly and :class:`TransportError` when the registry
    cannot be queried.
    """
    owns_session = session is None
    session = session or requests.Session()
    try:
        collections = fetch_collections(session, url, timeout)
    finally:
        if owns_session:
            session.close()

    logger.debug("Registry lists %d collection(s)", len(collections))
    for item in collections:
        if item.collection_id == policy_id:
            return item
    raise NotFoundError(policy_id)
