# content service: testimonials, faqs, stories, articles and publication bookkeeping
# publication sending itself (email/whatsapp rendering) lives outside this api

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import Depends
from pydantic import ValidationError

from practice_admin.models.content import (
    FAQ,
    Article,
    ArticlePublication,
    Story,
    Testimonial,
)
from practice_admin.services.backend import (
    BackendClient,
    BackendQueryError,
    Embed,
    Filter,
    Order,
    eq,
    get_backend,
)

logger = logging.getLogger(__name__)

ARTICLE_EMBED_COLUMNS = ("id", "title", "content_markdown", "category_id", "contact_email", "published_at")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class ContentService:
    """content tables behind the admin and the public site"""

    def __init__(self, backend: BackendClient):
        self.backend = backend

    # testimonials

    async def fetch_testimonials(self) -> list[Testimonial]:
        """displayable testimonials, empty on any backend failure"""
        try:
            rows = await self.backend.fetch("testimonials", order=[Order("id")])
        except BackendQueryError as e:
            logger.warning(f"Error fetching testimonials: {e.message}")
            return []
        testimonials = []
        for row in rows:
            # only those with an image or full text can be shown
            if not (row.get("image_url") or row.get("text_full")):
                continue
            try:
                testimonials.append(Testimonial(**row))
            except ValidationError as e:
                logger.warning(f"Skipping malformed testimonial {row.get('id')}: {e.error_count()} errors")
        return testimonials

    # faqs

    async def list_faqs(self, active_only: bool = False) -> list[FAQ]:
        filters = [eq("is_active", True)] if active_only else []
        rows = await self.backend.fetch("faq_questions", filters=filters, order=[Order("order_index"), Order("id")])
        return [FAQ(**row) for row in rows]

    # stories

    async def list_stories(self) -> list[Story]:
        rows = await self.backend.fetch("stories", order=[Order("publish_date", ascending=False)])
        return [Story(**row) for row in rows]

    # articles

    async def list_articles(self, content_type: Optional[str] = None) -> list[Article]:
        filters = [eq("type", content_type)] if content_type else []
        rows = await self.backend.fetch(
            "professional_content", filters=filters, order=[Order("created_at", ascending=False)],
        )
        return [Article(**row) for row in rows]

    async def get_article(self, article_id: int) -> Article:
        row = await self.backend.fetch_one("professional_content", [eq("id", article_id)])
        return Article(**row)

    async def update_article_published_date(self, article_id: int) -> Article:
        row = await self.backend.update_one("professional_content", article_id, {"published_at": _now_iso()})
        logger.info(f"Article {article_id} marked published")
        return Article(**row)

    # publications

    async def list_publications(self, article_id: int) -> list[ArticlePublication]:
        rows = await self.backend.fetch(
            "article_publications",
            filters=[eq("content_id", article_id)],
            order=[Order("scheduled_date")],
        )
        return [ArticlePublication(**row) for row in rows]

    async def get_scheduled_publications(self, now: Optional[datetime] = None) -> list[ArticlePublication]:
        """unpublished publications due by now, each with its article embedded"""
        now = now or datetime.now(timezone.utc)
        rows = await self.backend.fetch(
            "article_publications",
            filters=[
                Filter("scheduled_date", "lte", now.isoformat()),
                Filter("published_date", "is", None),
            ],
            order=[Order("scheduled_date")],
            embed={"professional_content": Embed("content_id", ARTICLE_EMBED_COLUMNS)},
        )
        logger.info(f"Found {len(rows)} scheduled publications due by {now.isoformat()}")
        return [ArticlePublication(**row) for row in rows]

    async def mark_publication_completed(self, publication_id: int) -> ArticlePublication:
        row = await self.backend.update_one("article_publications", publication_id, {"published_date": _now_iso()})
        return ArticlePublication(**row)

    async def reset_publication_date(self, publication_id: int) -> ArticlePublication:
        row = await self.backend.update_one("article_publications", publication_id, {"published_date": None})
        return ArticlePublication(**row)

    # email bookkeeping

    async def get_failed_email_recipients(self, article_id: int) -> list[str]:
        rows = await self.backend.fetch(
            "email_logs",
            filters=[eq("article_id", article_id), eq("status", "failed")],
            columns=("email",),
        )
        return list(dict.fromkeys(row["email"] for row in rows if row.get("email")))

    async def fetch_active_subscribers(self) -> list[str]:
        rows = await self.backend.fetch(
            "content_subscribers",
            filters=[eq("is_subscribed", True)],
            columns=("email",),
        )
        return list(dict.fromkeys(row["email"] for row in rows if row.get("email")))

    async def get_email_delivery_stats(self, article_id: int) -> Optional[dict]:
        """sent/failed counts for an article, None when nothing was logged"""
        rows = await self.backend.fetch("email_logs", filters=[eq("article_id", article_id)], columns=("status",))
        sent = sum(1 for row in rows if row.get("status") == "sent")
        failed = sum(1 for row in rows if row.get("status") == "failed")
        if sent == 0 and failed == 0:
            return None
        return {"articleId": article_id, "totalSent": sent, "totalFailed": failed}

    async def log_email_results(self, logs: list[dict]) -> int:
        sent_at = _now_iso()
        for log in logs:
            await self.backend.insert("email_logs", {**log, "sent_at": sent_at})
        return len(logs)


async def get_content_service(backend: BackendClient = Depends(get_backend)) -> ContentService:
    """dependency injection for the content service"""
    return ContentService(backend)
