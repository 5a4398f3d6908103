import logging
from datetime import UTC, datetime

from publisphere.core.security import decrypt_secret
from publisphere.domain.models.content_item import ContentItem, ContentItemStatus
from publisphere.domain.models.job import Job, JobType
from publisphere.domain.models.wordpress_site import WordPressSite
from publisphere.integrations.job_handlers.base_handler import (
    BaseJobHandler,
    HandlerResult,
    MissingPrerequisiteError,
    PublishTargetError,
)
from publisphere.integrations.media_upload_service import upload_featured_image
from publisphere.integrations.wordpress_client import WordPressClient

logger = logging.getLogger(__name__)


def build_post_payload(content_item: ContentItem, *, featured_media_id: int | None) -> dict:
    title = content_item.title or "Untitled"
    payload: dict = {
        "title": title,
        "content": content_item.content,
        "status": "publish",
    }
    if featured_media_id:
        payload["featured_media"] = featured_media_id
    if content_item.meta_description or content_item.focus_keyword:
        payload["meta"] = {
            "_yoast_wpseo_title": content_item.title or "",
            "_yoast_wpseo_metadesc": content_item.meta_description or "",
            "_yoast_wpseo_focuskw": content_item.focus_keyword or "",
            "rank_math_title": content_item.title or "",
            "rank_math_description": content_item.meta_description or "",
            "rank_math_focus_keyword": content_item.focus_keyword or "",
        }
    return payload


class ArticlePublishHandler(BaseJobHandler):
    job_type = JobType.PUBLISH_ARTICLE.value

    def _load_prerequisites(self, job: Job) -> tuple[ContentItem, WordPressSite]:
        content_item = self.db.get(ContentItem, job.content_item_id) if job.content_item_id else None
        if content_item is None:
            raise MissingPrerequisiteError("Content item not found")
        if not content_item.wordpress_site_id:
            raise MissingPrerequisiteError("No WordPress site specified")

        site = self.db.get(WordPressSite, content_item.wordpress_site_id)
        if site is None:
            raise MissingPrerequisiteError("WordPress site not found")
        if not site.is_connected:
            raise MissingPrerequisiteError("WordPress site is not connected")
        return content_item, site

    async def handle(self, job: Job) -> HandlerResult:
        content_item, site = self._load_prerequisites(job)

        wordpress = WordPressClient(
            self.http_client,
            site_url=site.site_url,
            username=site.username,
            password=decrypt_secret(site.app_password),
        )

        featured_media_id = None
        if content_item.featured_image_url:
            featured_media_id = await upload_featured_image(
                self.http_client, wordpress, content_item.featured_image_url
            )

        remote_post = await wordpress.create_post(
            build_post_payload(content_item, featured_media_id=featured_media_id)
        )
        remote_post_id = remote_post.get("id")
        if remote_post_id is None:
            raise PublishTargetError("WordPress publish response missing post id")

        content_item.status = ContentItemStatus.PUBLISHED.value
        content_item.published_at = datetime.now(UTC)
        content_item.wordpress_post_id = int(remote_post_id)
        self.db.add(content_item)
        self.db.flush()

        logger.info(
            "article_published content_item_id=%s site_id=%s wordpress_post_id=%s link=%s",
            content_item.id,
            site.id,
            remote_post_id,
            remote_post.get("link"),
        )
        return HandlerResult(
            metadata={
                "wordpress_post_id": int(remote_post_id),
                "link": remote_post.get("link"),
                "featured_media_id": featured_media_id,
            }
        )
