from threadsense.clients.base import AbstractForumClient
from threadsense.clients.forum_client import ForumClient, ForumClientError
from threadsense.clients.llm_client import GroqClient, LLMClient, LLMRateLimitError

__all__ = [
    "AbstractForumClient",
    "ForumClient",
    "ForumClientError",
    "LLMClient",
    "GroqClient",
    "LLMRateLimitError",
]
