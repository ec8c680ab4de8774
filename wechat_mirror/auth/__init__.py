"""Authentication submodule – platform access-token caching."""

from wechat_mirror.auth.token import AccessToken, AccessTokenCache

__all__ = ["AccessToken", "AccessTokenCache"]
