# content router: testimonials, faqs, stories, articles and publication scheduling

import logging
from typing import Optional

from fastapi import APIRouter, Depends, status

from practice_admin.dependencies import require_admin
from practice_admin.models.content import (
    FAQ,
    Article,
    ArticleCreate,
    ArticlePublication,
    ArticlePublicationCreate,
    ArticleUpdate,
    FAQCreate,
    FAQUpdate,
    Story,
    StoryCreate,
    StoryUpdate,
    Testimonial,
    TestimonialCreate,
)
from practice_admin.services.backend import BackendClient, get_backend
from practice_admin.services.content_service import ContentService, get_content_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/content", tags=["content"], dependencies=[Depends(require_admin)])


# testimonials

@router.get("/testimonials", response_model=list[Testimonial])
async def list_testimonials(content: ContentService = Depends(get_content_service)):
    """displayable testimonials; an unavailable backend yields an empty list"""
    return await content.fetch_testimonials()


@router.post("/testimonials", response_model=Testimonial, status_code=status.HTTP_201_CREATED)
async def create_testimonial(body: TestimonialCreate, backend: BackendClient = Depends(get_backend)):
    return await backend.insert("testimonials", body.model_dump())


@router.delete("/testimonials/{testimonial_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_testimonial(testimonial_id: int, backend: BackendClient = Depends(get_backend)):
    await backend.delete_one("testimonials", testimonial_id)


# faqs

@router.get("/faqs", response_model=list[FAQ])
async def list_faqs(active_only: bool = False, content: ContentService = Depends(get_content_service)):
    return await content.list_faqs(active_only=active_only)


@router.post("/faqs", response_model=FAQ, status_code=status.HTTP_201_CREATED)
async def create_faq(body: FAQCreate, backend: BackendClient = Depends(get_backend)):
    return await backend.insert("faq_questions", body.model_dump())


@router.patch("/faqs/{faq_id}", response_model=FAQ)
async def update_faq(faq_id: int, body: FAQUpdate, backend: BackendClient = Depends(get_backend)):
    return await backend.update_one("faq_questions", faq_id, body.model_dump(exclude_unset=True))


@router.delete("/faqs/{faq_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_faq(faq_id: int, backend: BackendClient = Depends(get_backend)):
    await backend.delete_one("faq_questions", faq_id)


# stories

@router.get("/stories", response_model=list[Story])
async def list_stories(content: ContentService = Depends(get_content_service)):
    return await content.list_stories()


@router.post("/stories", response_model=Story, status_code=status.HTTP_201_CREATED)
async def create_story(body: StoryCreate, backend: BackendClient = Depends(get_backend)):
    return await backend.insert("stories", body.model_dump())


@router.patch("/stories/{story_id}", response_model=Story)
async def update_story(story_id: int, body: StoryUpdate, backend: BackendClient = Depends(get_backend)):
    return await backend.update_one("stories", story_id, body.model_dump(exclude_unset=True))


@router.delete("/stories/{story_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_story(story_id: int, backend: BackendClient = Depends(get_backend)):
    await backend.delete_one("stories", story_id)


# articles

@router.get("/articles", response_model=list[Article])
async def list_articles(content_type: Optional[str] = None, content: ContentService = Depends(get_content_service)):
    return await content.list_articles(content_type)


@router.post("/articles", response_model=Article, status_code=status.HTTP_201_CREATED)
async def create_article(body: ArticleCreate, backend: BackendClient = Depends(get_backend)):
    return await backend.insert("professional_content", body.model_dump())


@router.get("/articles/{article_id}", response_model=Article)
async def get_article(article_id: int, content: ContentService = Depends(get_content_service)):
    return await content.get_article(article_id)


@router.patch("/articles/{article_id}", response_model=Article)
async def update_article(article_id: int, body: ArticleUpdate, backend: BackendClient = Depends(get_backend)):
    return await backend.update_one("professional_content", article_id, body.model_dump(exclude_unset=True))


@router.post("/articles/{article_id}/published", response_model=Article)
async def mark_article_published(article_id: int, content: ContentService = Depends(get_content_service)):
    return await content.update_article_published_date(article_id)


@router.get("/articles/{article_id}/email-stats")
async def get_email_stats(article_id: int, content: ContentService = Depends(get_content_service)):
    """sent and failed counts, null when nothing was sent"""
    return await content.get_email_delivery_stats(article_id)


@router.get("/articles/{article_id}/failed-recipients", response_model=list[str])
async def get_failed_recipients(article_id: int, content: ContentService = Depends(get_content_service)):
    return await content.get_failed_email_recipients(article_id)


# publications

@router.get("/articles/{article_id}/publications", response_model=list[ArticlePublication])
async def list_publications(article_id: int, content: ContentService = Depends(get_content_service)):
    return await content.list_publications(article_id)


@router.post("/publications", response_model=ArticlePublication, status_code=status.HTTP_201_CREATED)
async def schedule_publication(body: ArticlePublicationCreate, backend: BackendClient = Depends(get_backend)):
    payload = body.model_dump()
    payload["published_date"] = None
    return await backend.insert("article_publications", payload)


@router.get("/publications/due", response_model=list[ArticlePublication])
async def list_due_publications(content: ContentService = Depends(get_content_service)):
    """unpublished publications whose scheduled date has passed"""
    return await content.get_scheduled_publications()


@router.post("/publications/{publication_id}/complete", response_model=ArticlePublication)
async def complete_publication(publication_id: int, content: ContentService = Depends(get_content_service)):
    return await content.mark_publication_completed(publication_id)


@router.post("/publications/{publication_id}/reset", response_model=ArticlePublication)
async def reset_publication(publication_id: int, content: ContentService = Depends(get_content_service)):
    return await content.reset_publication_date(publication_id)


# subscribers

@router.get("/subscribers/active", response_model=list[str])
async def list_active_subscribers(content: ContentService = Depends(get_content_service)):
    return await content.fetch_active_subscribers()
