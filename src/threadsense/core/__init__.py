from threadsense.core.cache import AnalysisCache
from threadsense.core.dashboard import DashboardService
from threadsense.core.engine import InsightEngine
from threadsense.core.scheduler import RefreshScheduler

__all__ = [
    "AnalysisCache",
    "DashboardService",
    "InsightEngine",
    "RefreshScheduler",
]
