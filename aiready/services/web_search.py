# aiready/services/web_search.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

import httpx

from aiready.core import config
from aiready.core.errors import AppError, ExternalServiceError
from aiready.services.api_keys import ApiKeyManager

log = logging.getLogger("aiready.search")

SEARCH_ENDPOINT = "https://www.googleapis.com/customsearch/v1"
SEARCH_TIMEOUT = 10.0
MAX_RESULTS = 10

_manager: Optional[ApiKeyManager] = None
_manager_keys: Tuple[str, ...] = ()


def get_key_manager() -> ApiKeyManager:
    """Process wide key pool, rebuilt when the configured keys change."""
    global _manager, _manager_keys
    keys = tuple(config.google_search_keys())
    if _manager is None or keys != _manager_keys:
        _manager = ApiKeyManager(keys, service="Google Search")
        _manager_keys = keys
    return _manager


def _map_item(item: Dict[str, Any]) -> Dict[str, Any]:
    pagemap = item.get("pagemap") or {}
    thumb = None
    for source in ("cse_image", "cse_thumbnail"):
        entries = pagemap.get(source) or []
        if entries and isinstance(entries[0], dict) and entries[0].get("src"):
            thumb = entries[0]["src"]
            break
    return {
        "title": item.get("title") or "",
        "url": item.get("link") or "",
        "description": item.get("snippet") or "",
        "thumbnail_url": thumb,
    }


def google_search(
    query: str,
    num: int = 10,
    *,
    site_search: Optional[str] = None,
    exact_terms: Optional[str] = None,
    client: Optional[httpx.Client] = None,
    manager: Optional[ApiKeyManager] = None,
) -> List[Dict[str, Any]]:
    """
    Google Custom Search. Returns [] when search is not configured or every
    attempt failed; callers treat an empty list as "no grounding available".
    """
    engine_id = config.google_search_engine_id()
    manager = manager or get_key_manager()
    if not query or not engine_id or len(manager) == 0:
        log.debug("google search skipped (query=%r configured=%s)", query, bool(engine_id and len(manager)))
        return []

    params: Dict[str, Any] = {"q": query, "cx": engine_id, "num": max(1, min(int(num), MAX_RESULTS))}
    if site_search:
        params["siteSearch"] = site_search
    if exact_terms:
        params["exactTerms"] = exact_terms

    http = client or httpx.Client(timeout=SEARCH_TIMEOUT)

    def _call(key: str) -> List[Dict[str, Any]]:
        try:
            resp = http.get(SEARCH_ENDPOINT, params={**params, "key": key})
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise ExternalServiceError(
                "Google Search",
                f"Google Search returned {e.response.status_code}",
                details={"status_code": e.response.status_code},
            ) from e
        except httpx.HTTPError as e:
            raise ExternalServiceError("Google Search", f"Google Search request failed: {e}") from e
        return [_map_item(i) for i in (resp.json().get("items") or [])]

    try:
        results = manager.execute_with_retry(_call)
    except AppError as e:
        log.error("google search failed for %r: %s", query, e.message)
        return []
    finally:
        if client is None:
            http.close()

    log.info("google search %r -> %s results", query, len(results))
    return results
