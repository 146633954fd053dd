"""Drafting new thread ideas for a topic."""

from threadsense.models.llm import ThreadDraftSuggestion, ThreadType
from threadsense.parsing import JsonShape, ParseFailure
from threadsense.prompts.templates import PromptTemplates
from threadsense.services.base import BaseAdapter
from threadsense.utils.sanitizer import InputSanitizer

_TEMPLATES: dict[ThreadType, list[tuple[str, str]]] = {
    ThreadType.QUESTION: [
        (
            "How to get started with {topic}?",
            "I'm new to {topic} and looking for guidance on where to begin. What are the "
            "essential concepts I should understand first? Any recommended resources or best "
            "practices would be greatly appreciated.",
        ),
        (
            "Common challenges with {topic}?",
            "What are the most common challenges people face when working with {topic}? I'd "
            "love to hear about your experiences and how you overcame any obstacles.",
        ),
        (
            "Best tools and resources for {topic}?",
            "I'm looking for recommendations on the best tools, libraries, or resources for "
            "{topic}. What has worked well for you in your projects?",
        ),
    ],
    ThreadType.HELP: [
        (
            "Need help troubleshooting {topic} issue",
            "I'm experiencing some difficulties with {topic} and could use some assistance. "
            "I've tried the basic troubleshooting steps but haven't been able to resolve the "
            "issue. Has anyone encountered similar problems?",
        ),
        (
            "{topic} not working as expected - seeking advice",
            "I'm implementing {topic} in my project but it's not behaving as I expected. I'd "
            "appreciate any insights from the community on what might be going wrong.",
        ),
        (
            "Step-by-step help needed with {topic}",
            "I'm looking for detailed guidance on implementing {topic}. If anyone could provide "
            "step-by-step instructions or point me to good tutorials, that would be incredibly "
            "helpful.",
        ),
    ],
    ThreadType.ANNOUNCEMENT: [
        (
            "New developments in {topic}",
            "I wanted to share some new developments in the {topic} space. There have been "
            "some significant updates that I think the community would find valuable.",
        ),
        (
            "Community update: {topic} resources",
            "We've compiled some new resources and documentation for {topic}, including "
            "updated guides, examples, and best practices.",
        ),
        (
            "Important changes coming to {topic}",
            "There are some important changes coming to {topic} that will affect how we work "
            "with it. I wanted to give everyone advance notice and gather feedback.",
        ),
    ],
    ThreadType.DISCUSSION: [
        (
            "Let's discuss the future of {topic}",
            "I'd like to start a discussion about where {topic} is heading. What are your "
            "thoughts on the current state and future direction of {topic}?",
        ),
        (
            "Sharing experiences with {topic}",
            "I've been working with {topic} for a while now and wanted to share some insights "
            "and learn from others' experiences. What has your journey been like?",
        ),
        (
            "Best practices and tips for {topic}",
            "What are your go-to best practices when working with {topic}? I'd love to hear "
            "what strategies have worked well for others.",
        ),
    ],
}


def templated_suggestions(topic: str, thread_type: ThreadType) -> list[ThreadDraftSuggestion]:
    return [
        ThreadDraftSuggestion(title=title.format(topic=topic), body=body.format(topic=topic))
        for title, body in _TEMPLATES[thread_type]
    ]


class ThreadSuggestionService(BaseAdapter):
    task = "thread_suggestions"

    async def suggest(
        self, topic: str, thread_type: ThreadType = ThreadType.DISCUSSION
    ) -> list[ThreadDraftSuggestion]:
        topic = InputSanitizer.sanitize(topic, 200) or "community"
        prompt = PromptTemplates.THREAD_SUGGESTIONS.format(
            instruction=PromptTemplates.THREAD_TYPE_INSTRUCTIONS[thread_type.value],
            topic=topic.replace("\"", "'"),
        )

        result = self._validate_items(
            await self._generate_json(prompt, JsonShape.ARRAY), ThreadDraftSuggestion, 3
        )
        if isinstance(result, ParseFailure):
            self._log_fallback(result, thread_type=thread_type.value)
            return templated_suggestions(topic, thread_type)
        return result or templated_suggestions(topic, thread_type)
