# ABOUTME: Derives the tab grouping key for a request
# ABOUTME: Requests to the same host and port share one history tab


def derive_key(request) -> str:
    """
    Map a request to its tab key.

    Works with anything exposing ``host`` and ``port`` (a mitmproxy
    request or a RequestData). Scheme, path and method are ignored, so
    http and https traffic to the same host:port land in the same tab.

    Args:
        request: The request to group

    Returns:
        "{host}:{port}", e.g. "example.com:443"
    """
    return f"{request.host}:{request.port}"
