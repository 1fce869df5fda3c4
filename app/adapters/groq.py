from typing import Optional
from groq import AsyncGroq
from app.config import get_settings
from app.adapters.base import SummarizationAdapter

settings = get_settings()

FILE_SUMMARY_INSTRUCTION = (
    "You are a senior engineer onboarding a new teammate. "
    "Summarize what the given source file does and how it fits into the codebase "
    "in no more than 100 words."
)

COMMIT_SUMMARY_INSTRUCTION = (
    "You summarize git diffs. List the meaningful changes as short bullet points, "
    "mentioning the files involved. Skip formatting-only changes."
)


class GroqSummarizer(SummarizationAdapter):
    def __init__(self, client: Optional[AsyncGroq] = None, model: Optional[str] = None):
        self.client = client or AsyncGroq(api_key=settings.GROQ_API_KEY)
        self.model = model or settings.DEFAULT_MODEL_GROQ
        self.max_input_chars = settings.SUMMARY_MAX_INPUT_CHARS

    async def _complete(self, system_prompt: str, prompt: str) -> str:
        completion = await self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": prompt},
            ],
        )
        return (completion.choices[0].message.content or "").strip()

    async def summarize(self, content: str, source_label: str) -> str:
        """
        Summarizes one file. Oversized files are cut to SUMMARY_MAX_INPUT_CHARS.
        """
        code = content[: self.max_input_chars]
        return await self._complete(
            FILE_SUMMARY_INSTRUCTION,
            f"File: {source_label}\n\n{code}",
        )

    async def summarize_commit(self, diff: str) -> str:
        return await self._complete(COMMIT_SUMMARY_INSTRUCTION, diff[: self.max_input_chars])
