"""
HTTP cache headers for public read endpoints.
"""
from fastapi import Request, Response


def cache_control(max_age: int = 3600):
    """
    Build a dependency that marks successful GET responses as publicly cacheable.

    Usage:
        @router.get("", dependencies=[Depends(cache_control(3600))])
    """
    header_value = f"public, max-age={max_age}"

    def set_cache_headers(request: Request, response: Response) -> None:
        if request.method == "GET":
            response.headers["Cache-Control"] = header_value

    return set_cache_headers
