# any OpenAI-compatible endpoint (OpenAI, Together, Groq, ...) at a user-supplied base URL;
# the key is optional since some self-hosted gateways run without one

from codestream.providers.openai_chat import OpenAIChatClient
from codestream.providers.registry import PROVIDERS, ProviderId


class OpenAICompatibleClient(OpenAIChatClient):
    descriptor = PROVIDERS[ProviderId.OPENAI_COMPATIBLE]
