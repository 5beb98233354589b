from collections.abc import Iterable
from typing import Protocol

from fantasy_disc_golf.domain.alerts import AlertSubscription, SmsLogEntry
from fantasy_disc_golf.domain.audit import LineupReminderLog, LoadLog, WebhookLogEntry
from fantasy_disc_golf.domain.ownership import DraftAssignment, RosterEntry
from fantasy_disc_golf.domain.player import PoolPlayer
from fantasy_disc_golf.domain.scoring import Lineup, LineupStatus, RoundScore
from fantasy_disc_golf.domain.transaction import Transaction
from fantasy_disc_golf.domain.waiver import RequestStatus, StandingEntry, WaiverAward, WaiverRequest


class PlayerPoolRepo(Protocol):
    def upsert(self, player: PoolPlayer) -> str: ...

    def get(self, pdga: str) -> PoolPlayer | None: ...

    def find_by_name(self, name: str) -> PoolPlayer | None: ...

    def search(self, query: str, limit: int = ...) -> list[PoolPlayer]: ...

    def all(self) -> list[PoolPlayer]: ...


class DraftRepo(Protocol):
    def upsert(self, pick: DraftAssignment) -> int: ...

    def all(self) -> list[DraftAssignment]: ...

    def count(self) -> int: ...


class TransactionRepo(Protocol):
    def append(self, tx: Transaction) -> int: ...

    def all(self) -> list[Transaction]: ...

    def last_id(self) -> int: ...


class RosterRepo(Protocol):
    def replace_all(self, entries: Iterable[RosterEntry]) -> int: ...

    def all(self) -> list[RosterEntry]: ...

    def by_team(self, team: str) -> list[RosterEntry]: ...


class StandingRepo(Protocol):
    def upsert(self, entry: StandingEntry) -> str: ...

    def all(self) -> list[StandingEntry]: ...

    def set_event_points(self, team: str, event_code: str, points: float) -> None: ...

    def event_points(self, team: str) -> dict[str, float]: ...

    def season_total(self, team: str) -> float: ...


class RoundScoreRepo(Protocol):
    def replace_round(self, event_code: str, round_no: int, scores: Iterable[RoundScore]) -> int: ...

    def for_event(self, event_code: str) -> list[RoundScore]: ...

    def event_totals(self, event_code: str) -> dict[str, int]: ...


class LineupRepo(Protocol):
    def upsert(self, lineup: Lineup) -> int: ...

    def get(self, event_code: str, team: str) -> Lineup | None: ...

    def for_event(self, event_code: str, status: LineupStatus | None = None) -> list[Lineup]: ...


class WaiverRequestRepo(Protocol):
    def append(self, request: WaiverRequest) -> int: ...

    def active_for_cycle(self, cycle_id: str, team: str | None = None) -> list[WaiverRequest]: ...

    def for_cycle(self, cycle_id: str) -> list[WaiverRequest]: ...

    def set_status_for_active(self, cycle_id: str, status: RequestStatus, team: str | None = None) -> int: ...


class WaiverAwardRepo(Protocol):
    def append_many(self, awards: Iterable[WaiverAward]) -> int: ...

    def exists_for_cycle(self, cycle_id: str) -> bool: ...

    def for_cycle(self, cycle_id: str) -> list[WaiverAward]: ...


class SubscriptionRepo(Protocol):
    def upsert(self, sub: AlertSubscription) -> str: ...

    def get(self, team: str) -> AlertSubscription | None: ...

    def by_phone(self, phone_e164: str) -> list[AlertSubscription]: ...

    def all(self) -> list[AlertSubscription]: ...

    def set_opt_out(self, phone_e164: str, opt_out: bool, updated_at: str) -> int: ...

    def touch_last_sms(self, team: str, sent_at: str) -> None: ...


class SmsLogRepo(Protocol):
    def insert(self, entry: SmsLogEntry) -> int: ...


class WebhookLogRepo(Protocol):
    def insert(self, entry: WebhookLogEntry) -> int: ...


class LineupReminderLogRepo(Protocol):
    def exists(self, cycle_id: str, event_name: str) -> bool: ...

    def insert(self, log: LineupReminderLog) -> int: ...


class LoadLogRepo(Protocol):
    def insert(self, log: LoadLog) -> int: ...
