"""
Network operations: HTTP client setup and request helpers.
"""

from wechat_mirror.network.client import build_client, fetch_bytes, get_json, post_json

__all__ = ["build_client", "fetch_bytes", "get_json", "post_json"]
