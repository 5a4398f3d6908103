import os
from uuid import UUID

from sqlalchemy import select

from publisphere.application.services.job_service import enqueue_job
from publisphere.core.security import encrypt_secret
from publisphere.domain.models.content_item import ContentItem, ContentItemStatus
from publisphere.domain.models.job import JobType
from publisphere.domain.models.wordpress_site import WordPressSite
from publisphere.infrastructure.db.session import SessionLocal


DEFAULT_CLIENT_ID = UUID("00000000-0000-4000-8000-000000000001")
DEFAULT_SITE_URL = os.getenv("SEED_WORDPRESS_URL", "http://localhost:8080")
DEFAULT_SITE_USERNAME = os.getenv("SEED_WORDPRESS_USERNAME", "admin")
DEFAULT_SITE_APP_PASSWORD = os.getenv("SEED_WORDPRESS_APP_PASSWORD", "abcd efgh ijkl mnop")


def seed_dev_data() -> None:
    with SessionLocal() as db:
        existing_site = db.execute(
            select(WordPressSite).where(WordPressSite.client_id == DEFAULT_CLIENT_ID)
        ).scalar_one_or_none()
        if existing_site is not None:
            print(f"Seed exists: wordpress_site_id={existing_site.id}")
            return

        site = WordPressSite(
            client_id=DEFAULT_CLIENT_ID,
            site_name="Publisphere Dev Blog",
            site_url=DEFAULT_SITE_URL,
            username=DEFAULT_SITE_USERNAME,
            app_password=encrypt_secret(DEFAULT_SITE_APP_PASSWORD),
            is_connected=True,
        )
        db.add(site)
        db.flush()

        article = ContentItem(
            client_id=DEFAULT_CLIENT_ID,
            wordpress_site_id=site.id,
            title="Five things to check before spring",
            content="<p>Seeded article body.</p>",
            meta_description="A short seasonal checklist.",
            focus_keyword="spring checklist",
            status=ContentItemStatus.SCHEDULED.value,
        )
        db.add(article)
        db.flush()

        publish_job = enqueue_job(
            db,
            job_type=JobType.PUBLISH_ARTICLE.value,
            content_item_id=article.id,
            client_id=DEFAULT_CLIENT_ID,
        )
        email_job = enqueue_job(
            db,
            job_type=JobType.SEND_EMAIL.value,
            client_id=DEFAULT_CLIENT_ID,
            job_data={"to": "owner@publisphere.local", "template": "article_published"},
            max_attempts=1,
        )

        db.commit()

        print("Created dev seed data:")
        print(f"- client_id: {DEFAULT_CLIENT_ID}")
        print(f"- wordpress_site_id: {site.id}")
        print(f"- content_item_id: {article.id}")
        print(f"- publish_job_id: {publish_job.id}")
        print(f"- email_job_id: {email_job.id}")


if __name__ == "__main__":
    seed_dev_data()
