"""Short free-text reply drafting."""

from threadsense.models.llm import ReplyTone
from threadsense.parsing import ParseFailure
from threadsense.prompts.templates import PromptTemplates
from threadsense.services.base import BaseAdapter
from threadsense.utils.sanitizer import InputSanitizer

FALLBACK_REPLY = "Thank you for your message. We appreciate your contribution to the community."


class ReplyService(BaseAdapter):
    task = "smart_reply"

    async def generate(self, context: str, tone: ReplyTone = ReplyTone.HELPFUL) -> str:
        prompt = PromptTemplates.SMART_REPLY.format(
            context=InputSanitizer.sanitize(context, 4000),
            tone_instruction=PromptTemplates.TONE_INSTRUCTIONS[tone.value],
        )

        result = await self._generate(prompt)
        if isinstance(result, ParseFailure):
            self._log_fallback(result, tone=tone.value)
            return FALLBACK_REPLY
        return result.value
