"""Model catalogue and per-family request parameters.

Reasoning models (``gpt-5*``) reject ``max_tokens`` and custom temperatures;
they take ``max_completion_tokens`` instead. Each family owns the shape of
its request parameters so call sites never branch on model names.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from advisor_backend.schemas.advisor import ModelOption


@dataclass(frozen=True)
class ModelFamily:
    name: str
    prefixes: Tuple[str, ...]
    token_param: str
    supports_temperature: bool

    def matches(self, model_id: str) -> bool:
        return model_id.startswith(self.prefixes)

    def completion_params(self, max_tokens: int, temperature: Optional[float] = None) -> Dict[str, Any]:
        params: Dict[str, Any] = {self.token_param: max_tokens}
        if self.supports_temperature and temperature is not None:
            params["temperature"] = temperature
        return params


REASONING_FAMILY = ModelFamily(
    name="reasoning",
    prefixes=("gpt-5", "o1", "o3", "o4"),
    token_param="max_completion_tokens",
    supports_temperature=False,
)
CHAT_FAMILY = ModelFamily(
    name="chat",
    prefixes=(),
    token_param="max_tokens",
    supports_temperature=True,
)

MODEL_FAMILIES: Tuple[ModelFamily, ...] = (REASONING_FAMILY,)

AVAILABLE_MODELS: List[ModelOption] = [
    ModelOption(id="gpt-5.2", name="GPT-5.2", description="Latest flagship model"),
    ModelOption(id="gpt-5-mini", name="GPT-5 Mini", description="Fast and capable"),
    ModelOption(id="gpt-5-nano", name="GPT-5 Nano", description="Lightweight and efficient"),
]


def resolve_family(model_id: str) -> ModelFamily:
    for family in MODEL_FAMILIES:
        if family.matches(model_id):
            return family
    return CHAT_FAMILY


def completion_params(model_id: str, max_tokens: int, temperature: Optional[float] = None) -> Dict[str, Any]:
    return resolve_family(model_id).completion_params(max_tokens, temperature)


def build_candidates(*models: Optional[str]) -> List[str]:
    """Ordered, de-duplicated candidate list, skipping empty entries."""
    candidates: List[str] = []
    for model in models:
        if model and model not in candidates:
            candidates.append(model)
    return candidates
