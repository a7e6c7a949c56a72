"""
Pydantic schemas mirroring the signaling wire contract.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, ValidationError, validator

from ..errors import MalformedAnswer
from ..rtc.description import DESCRIPTION_TYPES, SessionDescription


class SessionDescriptionModel(BaseModel):
    type: str
    sdp: str

    model_config = ConfigDict(extra="ignore", frozen=True)

    @validator("type", pre=True)
    def _normalise_type(cls, value: object) -> str:
        if not isinstance(value, str):
            raise ValueError("type must be a string")
        result = value.strip().lower()
        if result not in DESCRIPTION_TYPES:
            raise ValueError(f"unsupported description type '{value}'")
        return result

    @classmethod
    def from_description(cls, description: SessionDescription) -> "SessionDescriptionModel":
        return cls(type=description.type, sdp=description.sdp)

    def to_description(self) -> SessionDescription:
        return SessionDescription(type=self.type, sdp=self.sdp)


def encode_description(description: SessionDescription) -> str:
    """Serialise ``description`` to the JSON body sent over the wire."""

    return SessionDescriptionModel.from_description(description).model_dump_json()


def decode_description(text: str) -> SessionDescription:
    """
    Parse a wire body into a :class:`SessionDescription`.

    Raises :class:`MalformedAnswer` carrying ``text`` verbatim when the body is
    not JSON or does not match the description shape.
    """

    try:
        model = SessionDescriptionModel.model_validate_json(text)
    except ValidationError as exc:
        reason = "; ".join(str(error.get("msg", "")) for error in exc.errors())
        raise MalformedAnswer(text, reason) from exc
    return model.to_description()


__all__ = ["SessionDescriptionModel", "decode_description", "encode_description"]
