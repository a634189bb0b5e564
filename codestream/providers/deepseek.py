# DeepSeek's hosted API: OpenAI-style chat completions, API key required.
# deepseek-reasoner streams its chain of thought in delta.reasoning_content,
# which CompletionStream wraps in reasoning markers.

from typing import List

from codestream.providers.base import GenerationRequest, ModelDescriptor
from codestream.providers.openai_chat import CompletionStream, OpenAIChatClient
from codestream.providers.registry import PROVIDERS, ProviderId
from codestream.providers.wire import require_api_key


class DeepSeekClient(OpenAIChatClient):
    descriptor = PROVIDERS[ProviderId.DEEPSEEK]

    async def list_models(self) -> List[ModelDescriptor]:
        require_api_key(self.descriptor, self.config)
        return await super().list_models()

    async def generate(self, request: GenerationRequest) -> CompletionStream:
        require_api_key(self.descriptor, self.config)
        return await super().generate(request)
