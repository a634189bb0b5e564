# LM Studio local server: OpenAI-style /v1 endpoints, no API key.
# It has no server-side system prompt, so build_messages injects the fallback one.

from codestream.providers.openai_chat import OpenAIChatClient
from codestream.providers.registry import PROVIDERS, ProviderId


class LMStudioClient(OpenAIChatClient):
    descriptor = PROVIDERS[ProviderId.LM_STUDIO]
