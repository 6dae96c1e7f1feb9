"""Stream message contracts.

Pydantic models validating the envelope and payloads of the messages the
processor consumes. Both the logical field names (``memberId``,
``traitKind``) and the names published on the profile trait topics
(``userId``, ``traitId``) are accepted.
"""

from typing import Any, Annotated, Dict, List, Optional, Type, TypeVar

from pydantic import (
    AliasChoices,
    AliasPath,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
)

from modules.communities.domain.errors import MessageValidationError
from modules.communities.domain.models import (
    IdentityEvent,
    TraitEvent,
    build_community_flags,
)

ModelT = TypeVar("ModelT", bound=BaseModel)


def _reject_bool(value: Any) -> Any:
    # JSON true/false would otherwise coerce to 1/0
    if isinstance(value, bool):
        raise ValueError("Input should be a valid integer, not a boolean")
    return value


class StreamEnvelope(BaseModel):
    """Envelope of a bus message. Only the payload is used."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    topic: Optional[str] = None
    originator: Optional[str] = None
    timestamp: Optional[str] = None
    payload: Dict[str, Any] = Field(default_factory=dict)


class TraitsPayload(BaseModel):
    """The ``traits`` object of a profile trait message."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    data: List[Dict[str, Optional[bool]]]


class TraitMessage(BaseModel):
    """Payload of a member profile trait create/update/delete message."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    member_id: Annotated[
        int,
        Field(
            ge=1,
            validation_alias=AliasChoices("memberId", "userId"),
            json_schema_extra={"example": 12345},
        ),
    ]
    trait_kind: Annotated[
        str,
        Field(
            min_length=1,
            validation_alias=AliasChoices("traitKind", "traitId"),
            json_schema_extra={"example": "communities"},
        ),
    ]
    created_by: Annotated[int, Field(ge=1, validation_alias="createdBy")]
    created_at: Annotated[str, Field(validation_alias="createdAt")]
    traits: TraitsPayload
    updated_by: Annotated[Optional[int], Field(ge=1, validation_alias="updatedBy")] = (
        None
    )
    updated_at: Annotated[Optional[str], Field(validation_alias="updatedAt")] = None
    user_handle: Annotated[Optional[str], Field(validation_alias="userHandle")] = None
    category_name: Annotated[Optional[str], Field(validation_alias="categoryName")] = (
        None
    )
    sso_provider: Annotated[Optional[str], Field(validation_alias="ssoProvider")] = (
        None
    )

    @field_validator("member_id", "created_by", "updated_by", mode="before")
    @classmethod
    def _ids_are_not_booleans(cls, v):
        return _reject_bool(v)

    def to_event(self) -> TraitEvent:
        """Convert into the TraitEvent consumed by the reconciler."""
        return TraitEvent(
            member_id=self.member_id,
            trait_kind=self.trait_kind,
            community_flags=build_community_flags(self.traits.data),
            sso_provider=self.sso_provider,
            user_handle=self.user_handle,
        )


class IdentityMessage(BaseModel):
    """Payload of an identity creation notification."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    subject_id: Annotated[
        int,
        Field(
            ge=1,
            validation_alias=AliasChoices("subjectId", "userId", "memberId", "id"),
        ),
    ]
    handle: Optional[str] = None
    sso_provider: Annotated[
        Optional[str],
        Field(
            validation_alias=AliasChoices(
                "ssoProvider", AliasPath("profile", "provider")
            ),
        ),
    ] = None

    @field_validator("subject_id", mode="before")
    @classmethod
    def _subject_id_is_not_boolean(cls, v):
        return _reject_bool(v)

    def to_event(self) -> IdentityEvent:
        return IdentityEvent(
            subject_id=self.subject_id,
            handle=self.handle,
            sso_provider=self.sso_provider or None,
        )


def validate_payload(model: Type[ModelT], payload: Any) -> ModelT:
    """Validate ``payload`` against ``model``.

    Raises:
        MessageValidationError: If the payload does not match the schema.
    """
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        raise MessageValidationError(
            f"Invalid {model.__name__}: {e.error_count()} validation error(s)",
            errors=e.errors(include_url=False),
        ) from e
