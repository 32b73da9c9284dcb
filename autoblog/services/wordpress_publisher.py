"""
Đăng bài lên WordPress qua REST API (/wp-json/wp/v2).
- Basic auth: username + application password (giải mã từ password_encrypted).
- Ảnh featured: tải từ URL rồi upload vào media library; lỗi ảnh chỉ warning, bài vẫn đăng.
- Lỗi HTTP map sang PublishError có message đọc được (401 auth, 403 quyền, 404 endpoint).
"""
import re
import time
from typing import Callable, Optional

import httpx

from autoblog.config import Settings
from autoblog.errors import PublishError
from autoblog.logging_config import get_logger
from autoblog.services.interfaces import GeneratedContent, PublishResult, SiteSnapshot
from autoblog.utils.credentials import CredentialsError, decrypt_secret

logger = get_logger(__name__)

POST_STATUS = "publish"
POST_FORMAT = "standard"
DEFAULT_IMAGE_TYPE = "image/jpeg"


def format_content_for_wordpress(content: str) -> str:
    """Markdown đơn giản -> HTML: heading, bold/italic, đoạn văn, xuống dòng."""
    html = re.sub(r"^### (.*)$", r"<h3>\1</h3>", content, flags=re.MULTILINE)
    html = re.sub(r"^## (.*)$", r"<h2>\1</h2>", html, flags=re.MULTILINE)
    html = re.sub(r"^# (.*)$", r"<h1>\1</h1>", html, flags=re.MULTILINE)
    html = re.sub(r"\*\*(.*?)\*\*", r"<strong>\1</strong>", html)
    html = re.sub(r"\*(.*?)\*", r"<em>\1</em>", html)
    html = html.replace("\n\n", "</p><p>").replace("\n", "<br>")
    html = f"<p>{html}</p>"
    return html.replace("<p></p>", "").replace("<p><br></p>", "")


def generate_filename(title: str, extension: str = "jpg") -> str:
    slug = re.sub(r"[^a-z0-9\s]", "", title.lower())
    slug = re.sub(r"\s+", "-", slug.strip())[:30]
    return f"featured-{slug}-{int(time.time() * 1000)}.{extension}"


def _error_detail(resp: httpx.Response) -> str:
    try:
        body = resp.json()
        if isinstance(body, dict) and body.get("message"):
            return str(body["message"])
    except ValueError:
        pass
    return resp.reason_phrase or resp.text or f"HTTP {resp.status_code}"


def publish_error_for_status(resp: httpx.Response) -> PublishError:
    status = resp.status_code
    if status == 401:
        return PublishError("WordPress authentication failed. Please check your credentials.")
    if status == 403:
        return PublishError("WordPress access denied. Please check your permissions.")
    if status == 404:
        return PublishError("WordPress API endpoint not found. Please check your site URL.")
    return PublishError(f"WordPress API error ({status}): {_error_detail(resp)}")


class WordPressPublisher:
    """Publisher cho WordPress REST API. transport cho phép inject httpx.MockTransport (test)."""

    def __init__(
        self,
        settings: Settings,
        decrypt: Callable[[str], str] = decrypt_secret,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.timeout = settings.wordpress_timeout_seconds
        self.media_timeout = settings.wordpress_media_timeout_seconds
        self.default_category = settings.wordpress_default_category
        self._decrypt = decrypt
        self._transport = transport

    def _client(self, timeout: float) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=timeout, transport=self._transport, follow_redirects=True)

    async def upload_featured_image(
        self,
        site: SiteSnapshot,
        password: str,
        image_url: str,
        filename: str,
    ) -> int:
        """Tải ảnh rồi upload vào /media. Trả về media id. Lỗi -> PublishError."""
        async with self._client(self.media_timeout) as client:
            try:
                img = await client.get(image_url)
                img.raise_for_status()
                resp = await client.post(
                    f"{site.api_endpoint.rstrip('/')}/media",
                    auth=(site.username, password),
                    files={"file": (filename, img.content, img.headers.get("content-type", DEFAULT_IMAGE_TYPE))},
                )
            except httpx.HTTPError as e:
                raise PublishError(f"Image upload failed: {e}") from e
        if resp.status_code == 401:
            raise PublishError("WordPress authentication failed for image upload")
        if resp.status_code == 413:
            raise PublishError("Image file too large for WordPress upload")
        if resp.status_code not in (200, 201):
            raise PublishError(f"WordPress upload error ({resp.status_code}): {_error_detail(resp)}")
        try:
            media_id = resp.json().get("id")
            if media_id is None:
                raise PublishError("WordPress upload returned no media id")
            return int(media_id)
        except (ValueError, AttributeError, TypeError) as e:
            raise PublishError(f"WordPress upload returned an unreadable response: {e}") from e

    async def publish(self, site: SiteSnapshot, content: GeneratedContent) -> PublishResult:
        """Tạo post status=publish. Trả về PublishResult(remote_post_id, remote_post_url)."""
        try:
            password = self._decrypt(site.password_encrypted)
        except CredentialsError as e:
            raise PublishError(f"WordPress credentials could not be decrypted ({e})") from e

        featured_media: Optional[int] = None
        if content.featured_image_url:
            try:
                featured_media = await self.upload_featured_image(
                    site, password, content.featured_image_url, generate_filename(content.title)
                )
                logger.info("wordpress.image_uploaded", site=site.site_name, media_id=featured_media)
            except PublishError as e:
                logger.warning("wordpress.image_upload_failed", site=site.site_name, error=str(e))

        payload = {
            "title": content.title,
            "content": format_content_for_wordpress(content.body),
            "status": POST_STATUS,
            "format": POST_FORMAT,
            "categories": [self.default_category],
        }
        if featured_media is not None:
            payload["featured_media"] = featured_media

        url = f"{site.api_endpoint.rstrip('/')}/posts"
        try:
            async with self._client(self.timeout) as client:
                resp = await client.post(url, json=payload, auth=(site.username, password))
        except httpx.TimeoutException as e:
            raise PublishError(f"WordPress request timed out: {e}") from e
        except httpx.ConnectError as e:
            raise PublishError("Cannot connect to WordPress site. Please check your site URL.") from e
        except httpx.RequestError as e:
            raise PublishError(f"Publishing failed: {e}") from e

        if resp.status_code not in (200, 201):
            err = publish_error_for_status(resp)
            logger.warning("wordpress.publish_failed", site=site.site_name, http_status=resp.status_code, error=str(err))
            raise err
        try:
            data = resp.json()
        except ValueError as e:
            raise PublishError("WordPress returned a non-JSON response") from e
        post_id = data.get("id")
        if post_id is None:
            raise PublishError("WordPress response has no post id")
        logger.info("wordpress.published", site=site.site_name, post_id=post_id, url=data.get("link"))
        return PublishResult(remote_post_id=str(post_id), remote_post_url=data.get("link"))
