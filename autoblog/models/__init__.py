"""SQLAlchemy models for AutoBlog Director."""
from autoblog.models.wordpress_site import WordPressSite
from autoblog.models.campaign import Campaign
from autoblog.models.content_job import ContentJob
from autoblog.models.campaign_log import CampaignLog

__all__ = [
    "WordPressSite",
    "Campaign",
    "ContentJob",
    "CampaignLog",
]
