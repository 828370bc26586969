# content models: testimonials, faqs, stories, articles and their publications

from typing import Optional, Literal
from pydantic import BaseModel, Field

ContentType = Literal["article", "poem", "humor"]
PublishLocation = Literal["Website", "Email", "WhatsApp", "Facebook", "Instagram"]


# testimonials

class Testimonial(BaseModel):
    id: int
    name: Optional[str] = None
    summary: str = ""
    text_full: Optional[str] = None
    image_url: Optional[str] = None
    source_type: Optional[str] = None
    created_at: Optional[str] = None


class TestimonialCreate(BaseModel):
    name: Optional[str] = None
    summary: str = Field(..., min_length=1)
    text_full: Optional[str] = None
    image_url: Optional[str] = None
    source_type: Optional[str] = None


# faqs

class FAQ(BaseModel):
    id: int
    question: str
    answer: str
    category: str = ""
    order_index: int = 0
    is_active: bool = True


class FAQCreate(BaseModel):
    question: str = Field(..., min_length=1)
    answer: str = Field(..., min_length=1)
    category: str = ""
    order_index: int = 0
    is_active: bool = True


class FAQUpdate(BaseModel):
    question: Optional[str] = Field(None, min_length=1)
    answer: Optional[str] = Field(None, min_length=1)
    category: Optional[str] = None
    order_index: Optional[int] = None
    is_active: Optional[bool] = None


# stories

class Story(BaseModel):
    id: int
    title: str
    description: str = ""
    image_url: str = ""
    pdf_url: str = ""
    publish_date: Optional[str] = None


class StoryCreate(BaseModel):
    title: str = Field(..., min_length=1)
    description: str = ""
    image_url: str = ""
    pdf_url: str = ""
    publish_date: str


class StoryUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    image_url: Optional[str] = None
    pdf_url: Optional[str] = None
    publish_date: Optional[str] = None


# articles

class Article(BaseModel):
    """a professional_content row"""
    id: int
    title: str
    content_markdown: str = ""
    type: ContentType = "article"
    category_id: Optional[int] = None
    image_url: Optional[str] = None
    contact_email: Optional[str] = None
    link_email: Optional[str] = None
    published_at: Optional[str] = None
    scheduled_publish: Optional[str] = None
    created_at: Optional[str] = None


class ArticleCreate(BaseModel):
    title: str = Field(..., min_length=1)
    content_markdown: str = ""
    type: ContentType = "article"
    category_id: Optional[int] = None
    image_url: Optional[str] = None
    contact_email: Optional[str] = None
    link_email: Optional[str] = None


class ArticleUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1)
    content_markdown: Optional[str] = None
    type: Optional[ContentType] = None
    category_id: Optional[int] = None
    image_url: Optional[str] = None
    contact_email: Optional[str] = None
    link_email: Optional[str] = None


class ArticlePublication(BaseModel):
    id: int
    content_id: Optional[int] = None
    publish_location: str
    scheduled_date: Optional[str] = None
    published_date: Optional[str] = None
    created_at: Optional[str] = None
    professional_content: Optional[dict] = None


class ArticlePublicationCreate(BaseModel):
    content_id: int
    publish_location: PublishLocation
    scheduled_date: Optional[str] = None


class Subscriber(BaseModel):
    id: int
    email: str
    first_name: Optional[str] = None
    is_subscribed: bool = True
