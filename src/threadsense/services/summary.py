"""Thread summarization."""

import json
from collections.abc import Sequence

from threadsense.models.forum import Post, Thread
from threadsense.parsing import ParseFailure
from threadsense.prompts.templates import PromptTemplates
from threadsense.services.base import BaseAdapter
from threadsense.utils.sanitizer import InputSanitizer

FALLBACK_SUMMARY = (
    "This thread discusses community topics and contains multiple contributions from members."
)

_MAX_REPLIES = 10


class SummaryService(BaseAdapter):
    task = "summary"

    async def summarize(self, thread: Thread, posts: Sequence[Post] = ()) -> str:
        replies = [
            {"author": p.author_name, "content": InputSanitizer.sanitize(p.body, 300)}
            for p in list(posts)[:_MAX_REPLIES]
        ]
        prompt = PromptTemplates.THREAD_SUMMARY.format(
            title=InputSanitizer.sanitize(thread.title, 300) or "Untitled",
            body=InputSanitizer.sanitize(thread.body, 500),
            replies=json.dumps(replies, indent=2),
        )

        result = await self._generate(prompt)
        if isinstance(result, ParseFailure):
            self._log_fallback(result, thread_id=thread.id)
            return FALLBACK_SUMMARY
        return result.value
