from .base import ApiError, FetchTimeoutError, HttpClient, HttpStatusError, fetch_json

__all__ = ["ApiError", "FetchTimeoutError", "HttpClient", "HttpStatusError", "fetch_json"]
