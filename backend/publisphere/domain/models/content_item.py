import uuid
from datetime import datetime
from enum import StrEnum

from sqlalchemy import CheckConstraint, ForeignKey, Integer, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from publisphere.infrastructure.db.base import Base
from publisphere.infrastructure.db.types import UTCDateTime


class ContentItemStatus(StrEnum):
    DRAFT = "draft"
    SCHEDULED = "scheduled"
    PUBLISHED = "published"
    FAILED = "failed"


class ContentItemType(StrEnum):
    ARTICLE = "article"
    GMB_POST = "gmb_post"


class ContentItem(Base):
    __tablename__ = "content_items"
    __table_args__ = (
        CheckConstraint(
            "status IN ('draft', 'scheduled', 'published', 'failed')",
            name="ck_content_items_status_values",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    client_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    wordpress_site_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("wordpress_sites.id", ondelete="SET NULL"), nullable=True, index=True
    )
    type: Mapped[str] = mapped_column(String(32), nullable=False, default=ContentItemType.ARTICLE.value)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default=ContentItemStatus.DRAFT.value)
    title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    meta_description: Mapped[str | None] = mapped_column(String(512), nullable=True)
    focus_keyword: Mapped[str | None] = mapped_column(String(255), nullable=True)
    featured_image_url: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    wordpress_post_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    scheduled_for: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    published_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime, server_default=func.now(), onupdate=func.now(), nullable=False
    )
