from typing import Any, Dict, Iterable, Optional


def page_payload(results: Iterable[Dict[str, Any]], next_token: Optional[str] = None) -> Dict[str, Any]:
    """List response body: the page and the token for the next one (None on the last page)."""
    return {'result': list(results), 'nextToken': next_token}
