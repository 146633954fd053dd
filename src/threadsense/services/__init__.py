from threadsense.services.health_report import HealthReportService
from threadsense.services.improvement import ContentImprovementService
from threadsense.services.moderation import ModerationService
from threadsense.services.recommendations import RecommendationService
from threadsense.services.replies import ReplyService
from threadsense.services.sentiment import SentimentService
from threadsense.services.summary import SummaryService
from threadsense.services.thread_ideas import ThreadSuggestionService
from threadsense.services.trending import TrendingService

__all__ = [
    "ContentImprovementService",
    "HealthReportService",
    "ModerationService",
    "RecommendationService",
    "ReplyService",
    "SentimentService",
    "SummaryService",
    "ThreadSuggestionService",
    "TrendingService",
]
