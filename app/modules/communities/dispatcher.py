"""Stream message dispatcher.

Parses and validates raw stream messages, routes them by topic and runs
reconciliation or enrollment. Every message yields a DispatchOutcome and no
exception reaches the consuming loop: once ``handle_message`` returns the
caller may commit the offset.

Routing:
    identity topic       -> enroll_from_sso_provider
    profile trait topics -> reconcile (only for the communities trait)
    anything else        -> ignored
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Iterable, List, Optional, Protocol, Union

from core.config import settings
from core.logging import bind_message_context, get_module_logger
from modules.communities.directory import GroupApiConfig, GroupDirectory
from modules.communities.domain.errors import (
    AuthError,
    DirectoryClientError,
    MessageValidationError,
)
from modules.communities.domain.models import ErrorDescriptor
from modules.communities.enrollment import enroll_from_sso_provider
from modules.communities.reconciliation import reconcile
from modules.communities.schemas import (
    IdentityMessage,
    StreamEnvelope,
    TraitMessage,
    validate_payload,
)

logger = get_module_logger()

DirectoryFactory = Callable[[GroupApiConfig], GroupDirectory]


class TokenProvider(Protocol):
    def get_token(self) -> str: ...


class DispatchStatus(str, Enum):
    PROCESSED = "processed"
    IGNORED = "ignored"
    REJECTED = "rejected"
    FAILED = "failed"


@dataclass
class DispatchOutcome:
    """Result of handling one stream message."""

    topic: str
    status: DispatchStatus
    detail: str = ""
    errors: List[ErrorDescriptor] = field(default_factory=list)
    correlation_id: Optional[str] = None
    offset: Optional[int] = None


class MessageDispatcher:
    """Routes stream messages to reconciliation and enrollment.

    Args:
        token_provider: Supplies the bearer token for the groups API.
        directory_factory: Builds a GroupDirectory from a per-message
            GroupApiConfig. Defaults to GroupDirectory.from_config.
        config_factory: Builds the GroupApiConfig from a token. Defaults to
            GroupApiConfig.from_settings.
        trait_topics / identity_topic / trait_kind: Routing, defaulting to
            settings.stream.
    """

    def __init__(
        self,
        token_provider: TokenProvider,
        directory_factory: Optional[DirectoryFactory] = None,
        config_factory: Optional[Callable[[str], GroupApiConfig]] = None,
        trait_topics: Optional[Iterable[str]] = None,
        identity_topic: Optional[str] = None,
        trait_kind: Optional[str] = None,
    ):
        self.token_provider = token_provider
        self.directory_factory = directory_factory or GroupDirectory.from_config
        self.config_factory = config_factory or GroupApiConfig.from_settings
        self.trait_topics = set(
            trait_topics if trait_topics is not None else settings.stream.trait_topics
        )
        self.identity_topic = identity_topic or settings.stream.IDENTITY_TOPIC
        self.trait_kind = (trait_kind or settings.stream.COMMUNITIES_TRAIT_ID).lower()

    @property
    def topics(self) -> List[str]:
        return sorted(self.trait_topics) + [self.identity_topic]

    def handle_message(
        self,
        topic: str,
        value: Union[bytes, str, dict],
        partition: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> DispatchOutcome:
        """Process one stream message to completion."""
        with bind_message_context(
            topic=topic, partition=partition, offset=offset
        ) as correlation_id:
            outcome = self._handle(topic, value)
            outcome.correlation_id = correlation_id
            outcome.offset = offset
            logger.info(
                "message_handled",
                status=outcome.status.value,
                detail=outcome.detail,
                error_count=len(outcome.errors),
            )
            return outcome

    def handle_batch(self, messages: Iterable[dict]) -> List[DispatchOutcome]:
        """Process messages strictly one after the other.

        Each message is a dict with ``topic`` and ``value`` and optionally
        ``partition`` and ``offset``.
        """
        return [
            self.handle_message(
                m["topic"],
                m["value"],
                partition=m.get("partition"),
                offset=m.get("offset"),
            )
            for m in messages
        ]

    def _handle(self, topic: str, value: Union[bytes, str, dict]) -> DispatchOutcome:
        logger.info("handle_stream_message", message=_preview(value))
        try:
            message = _decode(value)
        except ValueError as e:
            logger.error("invalid_message_json", error=str(e))
            return DispatchOutcome(topic, DispatchStatus.REJECTED, "invalid JSON")

        try:
            envelope = validate_payload(StreamEnvelope, message)
            if topic == self.identity_topic:
                return self._handle_identity(topic, envelope.payload)
            if topic in self.trait_topics:
                return self._handle_trait(topic, envelope.payload)
            logger.warning("unsupported_topic")
            return DispatchOutcome(topic, DispatchStatus.IGNORED, "unsupported topic")
        except MessageValidationError as e:
            logger.error("message_validation_failed", error=str(e), errors=e.errors)
            return DispatchOutcome(topic, DispatchStatus.REJECTED, str(e))
        except AuthError as e:
            logger.error("token_acquisition_failed", error=str(e))
            return DispatchOutcome(topic, DispatchStatus.FAILED, str(e))
        except DirectoryClientError as e:
            logger.error(
                "directory_request_failed", error=str(e), error_code=e.error_code
            )
            return DispatchOutcome(topic, DispatchStatus.FAILED, str(e))
        except Exception as e:
            logger.exception("message_processing_failed", error=str(e))
            return DispatchOutcome(topic, DispatchStatus.FAILED, str(e))

    def _handle_trait(self, topic: str, payload: dict) -> DispatchOutcome:
        trait_kind = payload.get("traitKind") or payload.get("traitId") or ""
        if not isinstance(trait_kind, str) or trait_kind.lower() != self.trait_kind:
            logger.info("trait_ignored", trait_kind=trait_kind)
            return DispatchOutcome(
                topic, DispatchStatus.IGNORED, f"trait is not '{self.trait_kind}'"
            )

        event = validate_payload(TraitMessage, payload).to_event()
        if not event.community_flags:
            logger.info("no_community_flags", member_id=event.member_id)
            return DispatchOutcome(topic, DispatchStatus.PROCESSED, "no communities")

        directory = self._directory()
        try:
            result = reconcile(event, directory)
        finally:
            _close(directory)

        return DispatchOutcome(
            topic,
            DispatchStatus.PROCESSED,
            f"added={len(result.added)} removed={len(result.removed)}",
            errors=result.errors,
        )

    def _handle_identity(self, topic: str, payload: dict) -> DispatchOutcome:
        event = validate_payload(IdentityMessage, payload).to_event()
        if not event.sso_provider:
            logger.debug("identity_without_sso_provider", subject_id=event.subject_id)
            return DispatchOutcome(topic, DispatchStatus.PROCESSED, "no sso provider")

        directory = self._directory()
        try:
            result = enroll_from_sso_provider(event, directory)
        finally:
            _close(directory)

        if result.is_success or result.is_not_found:
            return DispatchOutcome(topic, DispatchStatus.PROCESSED, result.message)
        return DispatchOutcome(topic, DispatchStatus.FAILED, result.message)

    def _directory(self) -> GroupDirectory:
        token = self.token_provider.get_token()
        return self.directory_factory(self.config_factory(token))


def _decode(value: Union[bytes, str, dict]) -> Any:
    if isinstance(value, dict):
        return value
    if isinstance(value, bytes):
        value = value.decode("utf-8")
    return json.loads(value)


def _preview(value: Union[bytes, str, dict], limit: int = 500) -> str:
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="replace")
    elif not isinstance(value, str):
        value = json.dumps(value, default=str)
    return value[:limit]


def _close(directory: Any) -> None:
    close = getattr(directory, "close", None)
    if callable(close):
        close()
