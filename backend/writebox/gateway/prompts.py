"""Prompt templates for every AI-assisted feature."""

from __future__ import annotations

LANGUAGE_NAMES = {
    "pt-BR": "Brazilian Portuguese",
    "pt-PT": "European Portuguese",
    "en-US": "American English",
    "en-GB": "British English",
    "es-ES": "Spanish",
    "fr-FR": "French",
    "de-DE": "German",
    "it-IT": "Italian",
}

WRITING_ASSISTANT = "You are a professional writing assistant."

ORGANIZE_PROMPT = (
    "Organize this text, fix grammar and spelling mistakes and improve its "
    "structure. Keep the original meaning. Answer with the revised text only:\n\n{text}"
)

TITLE_PROMPT = (
    "Write a short title (at most eight words) for the text below. "
    "Answer with the title only, without quotes or punctuation at the end.\n\n{text}"
)

ENHANCE_PROMPT = (
    "The following is a live speech transcript in {language}. Fix punctuation, "
    "capitalization and obvious recognition mistakes without changing the "
    "meaning, adding content or summarizing. Answer with the corrected "
    "transcript only:\n\n{text}"
)

IMAGE_PROMPT = "Describe this image in detail."

TRANSCRIPT_CHAT_SYSTEM = (
    "You answer questions about a transcript written in {language}. Base your "
    "answers on the transcript; say so when it does not contain the answer.\n\n"
    "TRANSCRIPT:\n{transcript}"
)

TRANSCRIPT_ACTIONS: dict[str, str] = {
    "improve": (
        "Rewrite this {language} transcript as clean, well-structured prose. Fix "
        "grammar and punctuation, remove filler words and keep every piece of "
        "information:\n\n{text}"
    ),
    "summarize": "Summarize this {language} transcript in a few concise paragraphs:\n\n{text}",
    "keywords": (
        "Extract the most important keywords and key phrases from this {language} "
        "transcript as a bulleted list:\n\n{text}"
    ),
    "questions": (
        "Write study or discussion questions, with short answers, based on this "
        "{language} transcript:\n\n{text}"
    ),
    "translate": "Translate this {language} transcript into {target}. Answer with the translation only:\n\n{text}",
    "topics": "List the main topics discussed in this {language} transcript, each with one sentence:\n\n{text}",
    "sentiment": (
        "Analyze the overall sentiment and tone of this {language} transcript. "
        "Name the sentiment, explain it and quote supporting passages:\n\n{text}"
    ),
    "entities": (
        "Identify the named entities (people, organizations, places, dates, "
        "amounts) in this {language} transcript, grouped by type:\n\n{text}"
    ),
    "action_items": (
        "List every action item, task or commitment mentioned in this {language} "
        "transcript, with the owner and deadline when stated:\n\n{text}"
    ),
    "minutes": (
        "Write formal meeting minutes from this {language} transcript: "
        "participants, agenda, discussion, decisions and next steps:\n\n{text}"
    ),
}

DEFAULT_TRANSLATION_TARGET = "English"


def language_name(tag: str | None) -> str:
    if not tag:
        return "the original language"
    return LANGUAGE_NAMES.get(tag, tag)


def render_action(action: str, text: str, language: str | None, target: str | None = None) -> str:
    """Render the template for ``action``; raises ``KeyError`` for unknown actions."""
    template = TRANSCRIPT_ACTIONS[action]
    return template.format(
        text=text,
        language=language_name(language),
        target=target or DEFAULT_TRANSLATION_TARGET,
    )


__all__ = [
    "LANGUAGE_NAMES",
    "WRITING_ASSISTANT",
    "ORGANIZE_PROMPT",
    "TITLE_PROMPT",
    "ENHANCE_PROMPT",
    "IMAGE_PROMPT",
    "TRANSCRIPT_CHAT_SYSTEM",
    "TRANSCRIPT_ACTIONS",
    "language_name",
    "render_action",
]
