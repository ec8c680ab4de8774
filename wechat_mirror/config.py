"""Configuration constants and runtime settings for wechat-mirror."""

import os
from dataclasses import dataclass
from pathlib import Path

DEFAULT_DOMAIN    = "https://mp.kloud.cn"
DEFAULT_PORT      = 3001
DEFAULT_IMAGE_DIR = "public/images"

# Mirrored files are served from <domain><IMAGES_PREFIX>/<filename>
IMAGES_PREFIX = "/images"

WECHAT_API           = "https://api.weixin.qq.com/cgi-bin"
TOKEN_URL            = WECHAT_API + "/token"
PUBLISHED_LIST_URL   = WECHAT_API + "/freepublish/batchget"
ARTICLE_DETAIL_URL   = WECHAT_API + "/freepublish/getarticle"
DRAFT_LIST_URL       = WECHAT_API + "/draft/batchget"
CONTENT_SOURCE_URL   = "https://yiban.io/api/abtest/fetch_wx_article"

REQUEST_TIMEOUT      = 15.0   # seconds per upstream API call
ASSET_TIMEOUT        = 30.0   # total seconds allowed for one asset download
CONVERT_TIMEOUT      = 120.0  # total seconds allowed for one conversion
TOKEN_SAFETY_MARGIN  = 60     # seconds subtracted from expires_in

DEFAULT_EXTENSION = ".jpg"
# data-type hints that force a vector extension regardless of the URL
VECTOR_TYPE_HINTS = {"svg": ".svg"}

# Custom snippet tag and raw embedding elements that never survive a conversion
VIDEO_SNIPPET_TAG   = "mp-common-videosnippet"
VIDEO_IFRAME_CLASS  = "video_iframe"

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)


@dataclass
class Settings:
    """Process-wide settings, normally read once from the environment."""

    app_id: str = ""
    app_secret: str = ""
    domain: str = DEFAULT_DOMAIN
    port: int = DEFAULT_PORT
    image_dir: Path = Path(DEFAULT_IMAGE_DIR)
    request_timeout: float = REQUEST_TIMEOUT
    asset_timeout: float = ASSET_TIMEOUT
    convert_timeout: float = CONVERT_TIMEOUT

    @classmethod
    def from_env(cls) -> "Settings":
        env = os.environ
        return cls(
            app_id=env.get("APP_ID", ""),
            app_secret=env.get("APP_SECRET", ""),
            domain=env.get("DOMAIN", DEFAULT_DOMAIN).rstrip("/"),
            port=int(env.get("PORT", DEFAULT_PORT)),
            image_dir=Path(env.get("IMAGE_DIR", DEFAULT_IMAGE_DIR)),
            request_timeout=float(env.get("REQUEST_TIMEOUT", REQUEST_TIMEOUT)),
            asset_timeout=float(env.get("ASSET_TIMEOUT", ASSET_TIMEOUT)),
            convert_timeout=float(env.get("CONVERT_TIMEOUT", CONVERT_TIMEOUT)),
        )
