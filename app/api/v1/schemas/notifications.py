"""Pydantic schemas for the notification queue API."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class QueueNotificationRequest(BaseModel):
    """Request to queue a notification job.

    Fields are deliberately loose so the dispatch engine owns validation and
    returns its own 400 messages.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "businessId": "biz_123",
                "channel": "push",
                "audience": "webpush:eyJlbmRwb2ludCI6Imh0dHBzOi8vLi4uIn0",
                "subject": "Order update",
                "message": "Your order is ready for pickup",
                "metadata": {"fallback": {"emailAudience": "owner@example.com"}},
                "maxAttempts": 3,
            }
        },
    )

    business_id: Optional[str] = Field(None, description="Owning business")
    channel: Optional[str] = Field(None, description="email, sms or push")
    audience: Optional[str] = Field(
        None, description="Channel specific target, defaults to 'all'"
    )
    subject: Optional[str] = Field(None, description="Email subject or push title")
    message: Optional[str] = Field(None, description="Message body")
    metadata: Optional[Any] = Field(
        None, description="Key/value map; scheduledFor and fallback are reserved"
    )
    max_attempts: Optional[Any] = Field(None, description="Attempt budget, 1-10")


class ProcessQueueRequest(BaseModel):
    """Request to process due notification jobs."""

    limit: Optional[int] = Field(
        None, description="Maximum number of jobs to process, defaults to 20"
    )
