import logging
from dataclasses import dataclass

from anthropic import AsyncAnthropic
from openai import AsyncOpenAI

from clinical_intel.config import (
    ANTHROPIC_API_KEY,
    LLM_MAX_OUTPUT_TOKENS,
    LLM_MODEL,
    LLM_PROVIDER,
    LLM_TEMPERATURE,
    LOCAL_LLM_BASE_URL,
    LOCAL_LLM_MODEL,
    OPENAI_API_KEY,
)

logger = logging.getLogger(__name__)

CLINICAL_SYSTEM_PROMPT = (
    "You are a clinical AI assistant specializing in summarizing patient notes "
    "accurately and concisely."
)

_ANTHROPIC_DEFAULT_MODEL = "claude-3-haiku-20240307"
_OPENAI_DEFAULT_MODEL = "gpt-4o-mini"


class SummarizationError(Exception):
    """Raised when the configured backend fails to produce a summary."""


@dataclass(frozen=True)
class GenerationOptions:
    max_output_tokens: int = 100
    temperature: float = 0.3


class SummarizationBackend:
    name: str = "base"

    async def generate(self, *, system: str, prompt: str, options: GenerationOptions) -> str:  # pragma: no cover - interface
        raise NotImplementedError

    async def aclose(self) -> None:
        return


class AnthropicBackend(SummarizationBackend):
    name = "anthropic"

    def __init__(self, api_key: str, model: str, client: AsyncAnthropic | None = None) -> None:
        self.model = model
        self._client = client or AsyncAnthropic(api_key=api_key)

    async def generate(self, *, system: str, prompt: str, options: GenerationOptions) -> str:
        message = await self._client.messages.create(
            model=self.model,
            max_tokens=options.max_output_tokens,
            temperature=options.temperature,
            system=system,
            messages=[{"role": "user", "content": prompt}],
        )
        raw = ""
        for block in message.content:
            if hasattr(block, "text"):
                raw += block.text
        return raw

    async def aclose(self) -> None:
        await self._client.close()


class OpenAIBackend(SummarizationBackend):
    """OpenAI chat completions.

    Also drives local model runtimes (Ollama, llama.cpp server, vLLM) through
    their OpenAI-compatible endpoint when ``base_url`` is set.
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str | None = None,
        name: str = "openai",
        client: AsyncOpenAI | None = None,
    ) -> None:
        self.name = name
        self.model = model
        self._client = client or AsyncOpenAI(api_key=api_key, base_url=base_url or None)

    async def generate(self, *, system: str, prompt: str, options: GenerationOptions) -> str:
        response = await self._client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
            max_tokens=options.max_output_tokens,
            temperature=options.temperature,
        )
        return response.choices[0].message.content or ""

    async def aclose(self) -> None:
        await self._client.close()


class EchoBackend(SummarizationBackend):
    """Dummy backend: echoes the prompt cut to ``max_output_tokens`` words."""

    name = "dummy"

    async def generate(self, *, system: str, prompt: str, options: GenerationOptions) -> str:
        return " ".join(prompt.split()[: options.max_output_tokens])


def build_backend(provider: str | None = None) -> SummarizationBackend:
    """Select the summarization backend from configuration.

    ``auto`` prefers Anthropic, then OpenAI, and falls back to the dummy echo
    backend when no key is present. An explicitly requested provider that is
    missing its credential or endpoint raises ``RuntimeError``.
    """
    provider = (provider or LLM_PROVIDER or "auto").lower()
    if provider == "auto":
        if ANTHROPIC_API_KEY:
            provider = "anthropic"
        elif OPENAI_API_KEY:
            provider = "openai"
        else:
            provider = "dummy"

    if provider == "anthropic":
        if not ANTHROPIC_API_KEY:
            raise RuntimeError("LLM_PROVIDER is 'anthropic' but ANTHROPIC_API_KEY is not set")
        return AnthropicBackend(ANTHROPIC_API_KEY, LLM_MODEL or _ANTHROPIC_DEFAULT_MODEL)
    if provider == "openai":
        if not OPENAI_API_KEY:
            raise RuntimeError("LLM_PROVIDER is 'openai' but OPENAI_API_KEY is not set")
        return OpenAIBackend(OPENAI_API_KEY, LLM_MODEL or _OPENAI_DEFAULT_MODEL)
    if provider == "local":
        if not LOCAL_LLM_BASE_URL:
            raise RuntimeError("LLM_PROVIDER is 'local' but LOCAL_LLM_BASE_URL is not set")
        # Local runtimes ignore the key, but the client requires one.
        return OpenAIBackend(
            OPENAI_API_KEY or "local",
            LLM_MODEL or LOCAL_LLM_MODEL,
            base_url=LOCAL_LLM_BASE_URL,
            name="local",
        )
    if provider == "dummy":
        return EchoBackend()
    raise RuntimeError(f"Unknown LLM_PROVIDER: {provider!r}")


class SummarizationGateway:
    """Prompt in, generated text out, whatever backend is configured."""

    def __init__(
        self,
        backend: SummarizationBackend,
        system_prompt: str = CLINICAL_SYSTEM_PROMPT,
        default_options: GenerationOptions | None = None,
    ) -> None:
        self.backend = backend
        self.system_prompt = system_prompt
        self.default_options = default_options or GenerationOptions(
            max_output_tokens=LLM_MAX_OUTPUT_TOKENS,
            temperature=LLM_TEMPERATURE,
        )

    async def summarize(self, prompt: str, options: GenerationOptions | None = None) -> str:
        options = options or self.default_options
        try:
            text = await self.backend.generate(
                system=self.system_prompt,
                prompt=prompt,
                options=options,
            )
        except Exception as exc:
            logger.warning("Summarization via %s failed: %s", self.backend.name, exc)
            raise SummarizationError(f"{self.backend.name} backend failed") from exc

        text = (text or "").strip()
        if not text:
            raise SummarizationError(f"{self.backend.name} backend returned an empty summary")
        return text

    async def aclose(self) -> None:
        await self.backend.aclose()
