"""Shared pydantic base for wire models."""

from __future__ import annotations

from typing import Annotated, Any, Union

from pydantic import BaseModel, ConfigDict, Discriminator, Tag, ValidationInfo, model_validator

# Validation context key that turns unknown ``type`` tags into errors.
REJECT_UNKNOWN_KINDS = "reject_unknown_kinds"

_UNKNOWN_TAG = "__unknown__"


class ApiModel(BaseModel):
    """Base for every JSON object exchanged with the Responses API.

    Field names match the snake_case wire keys. Keys the model does not know
    about are kept so newer payloads survive a round trip.
    """

    model_config = ConfigDict(extra="allow")


class UnknownKind(ApiModel):
    """Object whose ``type`` tag this library does not model.

    Every key is kept as an extra field, so the object serializes back
    unchanged. Validation fails instead when the context sets
    ``REJECT_UNKNOWN_KINDS``.
    """

    type: str

    @model_validator(mode="after")
    def _reject_when_strict(self, info: ValidationInfo) -> UnknownKind:
        if info.context and info.context.get(REJECT_UNKNOWN_KINDS):
            raise ValueError(f"unsupported {self.type!r} object")
        return self


def _tag_of(value: Any) -> Any:
    if isinstance(value, dict):
        return value.get("type")
    return getattr(value, "type", None)


def open_union(*models: type[ApiModel], fallback: type[UnknownKind]) -> Any:
    """Discriminated union on ``type`` that routes unknown tags to ``fallback``."""

    tags = {model.model_fields["type"].default for model in models}

    def discriminate(value: Any) -> str:
        tag = _tag_of(value)
        return tag if tag in tags else _UNKNOWN_TAG

    members = tuple(Annotated[model, Tag(model.model_fields["type"].default)] for model in models)
    return Annotated[Union[members + (Annotated[fallback, Tag(_UNKNOWN_TAG)],)], Discriminator(discriminate)]


__all__ = ["ApiModel", "REJECT_UNKNOWN_KINDS", "UnknownKind", "open_union"]
