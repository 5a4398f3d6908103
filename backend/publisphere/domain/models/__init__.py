from publisphere.domain.models.content_item import ContentItem
from publisphere.domain.models.job import Job
from publisphere.domain.models.wordpress_site import WordPressSite

__all__ = [
    "ContentItem",
    "Job",
    "WordPressSite",
]
