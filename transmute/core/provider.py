from enum import Enum


class Provider(str, Enum):
    """Supported LLM vendors."""

    XAI = "xai"
    GROQ = "groq"
    GEMINI = "gemini"
    OPENAI = "openai"
    OLLAMA = "ollama"
    MISTRAL = "mistral"
    VOYAGEAI = "voyageai"
    DEEPSEEK = "deepseek"
    ELEVENLABS = "elevenlabs"
    ANTHROPIC = "anthropic"
    OPENROUTER = "openrouter"

    @property
    def fallback_model(self) -> str:
        """Model used when neither the transformer nor the config names one."""
        return _FALLBACK_MODELS[self]

    @property
    def litellm_prefix(self) -> str:
        return _LITELLM_PREFIXES.get(self, self.value)

    def to_litellm_model(self, model: str) -> str:
        """
        Build the litellm model name for this provider, e.g. 'openai/gpt-4o-mini'.

        Model names that already carry the provider prefix are returned untouched.
        """
        prefix = f"{self.litellm_prefix}/"
        if model.startswith(prefix):
            return model
        return f"{prefix}{model}"


_FALLBACK_MODELS = {
    Provider.XAI: "grok-beta",
    Provider.GROQ: "llama-3.1-8b",
    Provider.GEMINI: "gemini-2.0",
    Provider.OLLAMA: "llama3.2:1b",
    Provider.OPENAI: "gpt-4o-mini",
    Provider.MISTRAL: "mistral-7b-instruct",
    Provider.VOYAGEAI: "voyage-3-lite",
    Provider.DEEPSEEK: "deepseek-chat",
    Provider.ANTHROPIC: "claude-3-5-haiku-20241022",
    Provider.OPENROUTER: "meta-llama/llama-3.2-1b-instruct:free",
    Provider.ELEVENLABS: "eleven_turbo_v2_5",
}

# litellm routes by prefix; only the vendors whose prefix differs are listed
_LITELLM_PREFIXES = {
    Provider.VOYAGEAI: "voyage",
}
