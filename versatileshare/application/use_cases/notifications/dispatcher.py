"""Fan-out of notifications to durable storage and live connections."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Hashable
from uuid import uuid4

from versatileshare.domain.entities import (
    ROLE_STUDENT,
    AllStudentsTarget,
    DepartmentTarget,
    GenericNotificationEvent,
    Notification,
    NotificationTarget,
    PrincipalTarget,
    RealtimeEvent,
    SemesterTarget,
)
from versatileshare.domain.errors import ErrorKind, NotificationError, ResolutionFailure
from versatileshare.infrastructure.notifications import serialize_event
from versatileshare.utils import now_in_app_timezone

from .ports import LiveChannel, NotificationStore, UserDirectory

logger = logging.getLogger(__name__)


@dataclass
class RecipientFailure:
    """A per-recipient step that failed without aborting the fan-out."""

    recipient_id: Hashable
    kind: ErrorKind
    detail: str


@dataclass
class DispatchReport:
    """Outcome of a single :meth:`NotificationDispatcher.notify` call.

    Resolution succeeded whenever a report exists; persistence and live
    delivery are best-effort and their misses are listed in ``failures``.
    """

    event_key: str
    target: NotificationTarget
    recipients: tuple[Hashable, ...] = ()
    persisted_ids: list[int] = field(default_factory=list)
    live_deliveries: int = 0
    group_deliveries: int = 0
    failures: list[RecipientFailure] = field(default_factory=list)

    @property
    def persisted_count(self) -> int:
        return len(self.persisted_ids)

    def failures_of(self, kind: ErrorKind) -> list[RecipientFailure]:
        return [failure for failure in self.failures if failure.kind is kind]

    def summary(self) -> dict[str, object]:
        return {
            "event_key": self.event_key,
            "recipients": len(self.recipients),
            "persisted": self.persisted_count,
            "live_deliveries": self.live_deliveries,
            "group_deliveries": self.group_deliveries,
            "failures": [
                {"recipient_id": f.recipient_id, "kind": f.kind.value, "detail": f.detail}
                for f in self.failures
            ],
        }


class NotificationDispatcher:
    """Resolve a target, persist one record per principal and push live."""

    def __init__(
        self,
        registry: LiveChannel,
        directory: UserDirectory,
        store: NotificationStore,
        *,
        redundant_group_push: bool = True,
    ) -> None:
        self._registry = registry
        self._directory = directory
        self._store = store
        self._redundant_group_push = redundant_group_push

    async def resolve(self, target: NotificationTarget) -> list[Hashable]:
        """Return the ordered, deduplicated principal ids addressed by ``target``."""

        try:
            if isinstance(target, PrincipalTarget):
                principals = [target.principal_id]
            elif isinstance(target, SemesterTarget):
                principals = await self._directory.find_principals_by_role_and_semester(
                    ROLE_STUDENT, target.semester
                )
            elif isinstance(target, DepartmentTarget):
                principals = await self._directory.find_principals_by_department(
                    target.department
                )
            elif isinstance(target, AllStudentsTarget):
                principals = await self._directory.find_principals_by_role(ROLE_STUDENT)
            else:
                raise ResolutionFailure(f"Unsupported notification target {target!r}")
        except NotificationError:
            raise
        except Exception as exc:
            raise ResolutionFailure(f"Could not resolve recipients for {target!r}: {exc}") from exc

        return list(dict.fromkeys(p for p in principals if p is not None))

    async def notify(
        self,
        target: NotificationTarget,
        message: str,
        related_resource_id: int | None = None,
        *,
        event: RealtimeEvent | None = None,
    ) -> DispatchReport:
        """Fan ``message`` out to every principal resolved from ``target``."""

        recipients = await self.resolve(target)
        report = DispatchReport(
            event_key=uuid4().hex, target=target, recipients=tuple(recipients)
        )
        if not recipients:
            logger.info("No recipients resolved for %r; nothing to notify", target)
            return report

        created_at = now_in_app_timezone()
        if event is None:
            event = GenericNotificationEvent(
                message=message, resource_id=related_resource_id, timestamp=created_at
            )
        payload = {**serialize_event(event), "eventKey": report.event_key}

        records = [
            Notification(
                id=None,
                recipient_id=recipient_id,
                event_key=report.event_key,
                event_type=event.event_type,
                message=message,
                related_resource_id=related_resource_id,
                read=False,
                created_at=created_at,
            )
            for recipient_id in recipients
        ]
        await self._persist(records, report)

        for recipient_id in recipients:
            try:
                report.live_deliveries += await self._registry.push_to_principal(
                    recipient_id, event.event_type, payload
                )
            except Exception as exc:
                logger.warning("Live push to principal %s failed: %s", recipient_id, exc)
                report.failures.append(
                    RecipientFailure(recipient_id, ErrorKind.DELIVERY_FAILURE, str(exc))
                )

        group_tag = target.group_tag
        if self._redundant_group_push and group_tag:
            try:
                report.group_deliveries = await self._registry.push_to_group(
                    group_tag, event.event_type, payload
                )
            except Exception as exc:
                logger.warning("Group push to %s failed: %s", group_tag, exc)

        logger.info(
            "Notified %d recipients of %r (%d stored, %d live, %d via group)",
            len(recipients),
            target,
            report.persisted_count,
            report.live_deliveries,
            report.group_deliveries,
        )
        return report

    async def _persist(self, records: list[Notification], report: DispatchReport) -> None:
        insert_many = getattr(self._store, "insert_many", None)
        if insert_many is not None and len(records) > 1:
            try:
                report.persisted_ids.extend(await insert_many(records))
                return
            except Exception as exc:
                logger.warning(
                    "Batch insert of %d notifications failed (%s); storing individually",
                    len(records),
                    exc,
                )

        for record in records:
            try:
                report.persisted_ids.append(await self._store.insert(record))
            except Exception as exc:
                logger.error(
                    "Could not persist notification %s for recipient %s",
                    report.event_key,
                    record.recipient_id,
                    exc_info=True,
                )
                report.failures.append(
                    RecipientFailure(record.recipient_id, ErrorKind.PERSISTENCE_FAILURE, str(exc))
                )


__all__ = ["DispatchReport", "NotificationDispatcher", "RecipientFailure"]
