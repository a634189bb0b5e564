from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional

from codestream.providers.base import GenerationRequest
from codestream.services.system_prompts import resolve_system_prompt


class GenerateCodeRequest(BaseModel):
    """
    prompt/model are optional at the schema level on purpose: a missing one is
    reported as a 400 {"error": ...} by GenerationRequest, not as a 422.
    """

    model_config = ConfigDict(populate_by_name=True)

    prompt: Optional[str] = None
    model: Optional[str] = None
    provider: Optional[str] = None
    system_prompt: Optional[str] = Field(default=None, alias="systemPrompt")
    custom_system_prompt: Optional[str] = Field(default=None, alias="customSystemPrompt")
    max_tokens: Optional[int] = Field(default=None, alias="maxTokens")

    def to_generation_request(self) -> GenerationRequest:
        return GenerationRequest(
            prompt=self.prompt or "",
            model=self.model or "",
            system_prompt=resolve_system_prompt(self.system_prompt, self.custom_system_prompt),
            max_tokens=self.max_tokens,
        )


class ModelInfo(BaseModel):
    id: str
    name: str


class ProviderInfo(BaseModel):
    id: str
    name: str
    description: str
    isLocal: bool
    examples: List[str] = Field(default_factory=list)


class DefaultProviderResponse(BaseModel):
    defaultProvider: str
