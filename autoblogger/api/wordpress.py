from __future__ import annotations

import base64
import logging
from typing import Any, Dict, Optional, Sequence

import requests

from .config import DEFAULT_WP_REST_BASE, PipelineConfig

logger = logging.getLogger("autoblogger.wordpress")


class WordPressError(RuntimeError):
    pass


def _wp_auth_header(username: str, app_password: str) -> str:
    token = base64.b64encode(f"{username}:{app_password}".encode("utf-8")).decode("ascii")
    return f"Basic {token}"


def _wp_api_base(site_url: str, wp_rest_base: str) -> str:
    clean_site_url = site_url.rstrip("/")
    clean_rest_base = (wp_rest_base or DEFAULT_WP_REST_BASE).strip()
    if not clean_rest_base.startswith("/"):
        clean_rest_base = f"/{clean_rest_base}"
    return f"{clean_site_url}{clean_rest_base}"


def _parse_object(response: requests.Response, action: str) -> Dict[str, Any]:
    if 300 <= response.status_code < 400:
        location = response.headers.get("Location", "")
        raise WordPressError(
            f"WordPress {action} was redirected. Check WP_URL/WP_REST_BASE canonical host. redirect={location}"
        )
    if response.status_code >= 400:
        raise WordPressError(f"WordPress {action} failed, HTTP {response.status_code}: {response.text[:500]}")
    try:
        payload = response.json()
    except ValueError as exc:
        raise WordPressError(f"WordPress {action} returned non-JSON response.") from exc
    if not isinstance(payload, dict):
        raise WordPressError(f"WordPress {action} returned unexpected payload type: {type(payload).__name__}.")
    return payload


class WordPressClient:
    def __init__(
        self,
        *,
        site_url: str,
        username: str,
        app_password: str,
        wp_rest_base: str = DEFAULT_WP_REST_BASE,
        post_status: str = "publish",
        timeout_seconds: int = 60,
    ):
        self.api_base = _wp_api_base(site_url, wp_rest_base)
        self.post_status = post_status
        self.timeout_seconds = timeout_seconds
        self._auth = _wp_auth_header(username, app_password)

    @classmethod
    def from_config(cls, config: PipelineConfig) -> "WordPressClient":
        return cls(
            site_url=config.wp_url,
            username=config.wp_user,
            app_password=config.wp_password,
            wp_rest_base=config.wp_rest_base,
            post_status=config.post_status,
            timeout_seconds=config.timeout_seconds,
        )

    def upload_media(self, data: bytes, content_type: str, file_name: str) -> int:
        media_url = f"{self.api_base}/media"
        headers = {
            "Authorization": self._auth,
            "Content-Disposition": f'attachment; filename="{file_name}"',
            "Content-Type": content_type or "application/octet-stream",
        }
        try:
            response = requests.post(
                media_url,
                headers=headers,
                data=data,
                timeout=self.timeout_seconds,
                allow_redirects=False,
            )
        except requests.RequestException as exc:
            raise WordPressError(f"WordPress media upload failed: {exc}") from exc

        payload = _parse_object(response, "media upload")
        media_id = payload.get("id")
        if not media_id:
            raise WordPressError("WordPress media upload succeeded but response did not include media ID.")
        try:
            media_id = int(media_id)
        except (TypeError, ValueError) as exc:
            raise WordPressError(f"WordPress media upload returned a non-numeric media ID: {media_id!r}.") from exc
        logger.info("autoblogger.wordpress.media_uploaded media_id=%s file=%s", media_id, file_name)
        return media_id

    def create_post(
        self,
        *,
        title: str,
        content: str,
        excerpt: str,
        featured_media_id: int,
        category_ids: Optional[Sequence[int]] = None,
        tag_ids: Optional[Sequence[int]] = None,
    ) -> str:
        posts_url = f"{self.api_base}/posts"
        headers = {
            "Authorization": self._auth,
            "Content-Type": "application/json",
        }
        body: Dict[str, Any] = {
            "title": title,
            "content": content,
            "excerpt": excerpt,
            "status": self.post_status,
            "featured_media": featured_media_id,
            "format": "standard",
        }
        if category_ids:
            body["categories"] = list(category_ids)
        if tag_ids:
            body["tags"] = list(tag_ids)
        try:
            response = requests.post(
                posts_url,
                headers=headers,
                json=body,
                timeout=self.timeout_seconds,
                allow_redirects=False,
            )
        except requests.RequestException as exc:
            raise WordPressError(f"WordPress post creation failed: {exc}") from exc

        payload = _parse_object(response, "post creation")
        link = payload.get("link")
        guid = payload.get("guid")
        if not link and isinstance(guid, dict):
            link = guid.get("rendered")
        if not isinstance(link, str) or not link.strip():
            raise WordPressError("WordPress post creation succeeded but response did not include a URL.")
        logger.info("autoblogger.wordpress.post_created post_id=%s link=%s", payload.get("id"), link)
        return link.strip()
