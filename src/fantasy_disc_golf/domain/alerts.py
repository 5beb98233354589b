from dataclasses import dataclass
from enum import StrEnum


class AlertType(StrEnum):
    FREE_AGENTS = "FreeAgents"
    WAIVER_AWARDS = "WaiverAwards"
    WITHDRAWALS = "Withdrawals"
    LINEUP_REMINDERS = "LineupReminders"


class SmsStatus(StrEnum):
    SENT = "SENT"
    SKIPPED = "SKIPPED"
    ERROR = "ERROR"


@dataclass(frozen=True)
class AlertSubscription:
    team: str
    phone_e164: str
    enabled: bool = True
    free_agents: bool = False
    waiver_awards: bool = False
    withdrawals: bool = False
    lineup_reminders: bool = False
    opt_out: bool = False
    created_at: str | None = None
    updated_at: str | None = None
    last_sms_at: str | None = None

    def wants(self, alert_type: AlertType) -> bool:
        if not self.enabled or self.opt_out:
            return False
        match alert_type:
            case AlertType.FREE_AGENTS:
                return self.free_agents
            case AlertType.WAIVER_AWARDS:
                return self.waiver_awards
            case AlertType.WITHDRAWALS:
                return self.withdrawals
            case AlertType.LINEUP_REMINDERS:
                return self.lineup_reminders


@dataclass(frozen=True)
class SmsAlert:
    team: str
    to_phone: str
    alert_type: AlertType
    message: str
    dedupe_key: str | None = None


@dataclass(frozen=True)
class DeliveryResult:
    sent: bool
    reason: str | None = None
    provider_id: str | None = None


@dataclass(frozen=True)
class SmsLogEntry:
    sent_at: str
    team: str
    to_phone: str
    alert_type: str
    message: str
    status: SmsStatus
    provider_id: str = ""
    error: str = ""
    id: int | None = None
