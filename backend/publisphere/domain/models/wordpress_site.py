import uuid
from datetime import datetime

from sqlalchemy import Boolean, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from publisphere.infrastructure.db.base import Base
from publisphere.infrastructure.db.types import JSONType, UTCDateTime


class WordPressSite(Base):
    __tablename__ = "wordpress_sites"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    client_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    site_name: Mapped[str] = mapped_column(String(255), nullable=False)
    site_url: Mapped[str] = mapped_column(String(2048), nullable=False)
    username: Mapped[str] = mapped_column(String(255), nullable=False)
    # iv:ciphertext hex produced by publisphere.core.security.encrypt_secret
    app_password: Mapped[str] = mapped_column(String(4096), nullable=False)
    is_connected: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    last_sync: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    site_info: Mapped[dict | None] = mapped_column(JSONType, nullable=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, server_default=func.now(), nullable=False)
