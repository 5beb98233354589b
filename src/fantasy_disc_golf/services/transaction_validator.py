from __future__ import annotations

from typing import TYPE_CHECKING

from fantasy_disc_golf.domain.ownership import FREE_AGENT
from fantasy_disc_golf.domain.transaction import TransactionType, ValidationResult

if TYPE_CHECKING:
    from fantasy_disc_golf.domain.ownership import OwnershipSnapshot
    from fantasy_disc_golf.domain.transaction import ProposedTransaction
    from fantasy_disc_golf.league.teams import TeamRegistry

_ALLOWED = ", ".join(t.value for t in TransactionType)


class TransactionValidator:
    """Checks a proposed roster move against an ownership snapshot.

    Never mutates anything. Every rule violation is collected so the caller
    sees all of them at once; only an unknown type stops the checks early.
    """

    def __init__(self, registry: TeamRegistry, roster_cap: int) -> None:
        self._registry = registry
        self._roster_cap = roster_cap

    def validate(self, proposed: ProposedTransaction, snapshot: OwnershipSnapshot) -> ValidationResult:
        errors: list[str] = []
        tx_type = proposed.normalized_type
        team = self._registry.normalize(proposed.team)
        from_team = self._registry.normalize(proposed.from_team)
        to_team = self._registry.normalize(proposed.to_team)

        if not tx_type:
            errors.append("Missing field: type")
        if not team:
            errors.append("Missing field: team")

        if tx_type and tx_type not in TransactionType.__members__:
            errors.append(f"Unknown transaction type: {tx_type}. Allowed: {_ALLOWED}.")
            return ValidationResult(
                ok=False,
                errors=tuple(errors),
                details={"type": tx_type, "team": team, "fromTeam": from_team, "toTeam": to_team},
            )

        if tx_type == TransactionType.SWAP:
            return self._validate_swap(proposed, team, snapshot, errors)

        pdga = proposed.pdga.strip()
        name = proposed.name.strip()
        if not pdga:
            errors.append("Missing field: pdga")
        if not name:
            errors.append("Missing field: name")
        if errors:
            return ValidationResult(
                ok=False,
                errors=tuple(errors),
                details={
                    "type": tx_type,
                    "team": team,
                    "fromTeam": from_team,
                    "toTeam": to_team,
                    "pdga": pdga,
                    "name": name,
                },
            )

        current_owner = snapshot.owner_of(pdga) or ""
        is_free_agent = snapshot.is_free_agent(pdga)
        cap = self._roster_cap

        match tx_type:
            case TransactionType.ADD:
                target = to_team or team
                if not is_free_agent:
                    errors.append(
                        f"ADD rejected: player {name} ({pdga}) is not a Free Agent. Current owner: {current_owner}."
                    )
                count = snapshot.roster_count(target)
                if count >= cap:
                    errors.append(f"ADD rejected: {target} already has {count}/{cap} players.")
            case TransactionType.DROP:
                expected = from_team or team
                errors.extend(_ownership_errors("DROP", name, pdga, current_owner, expected))
            case TransactionType.TRADE:
                if not to_team:
                    errors.append("TRADE requires toTeam.")
                elif to_team == team:
                    errors.append("Invalid TRADE: fromTeam and toTeam cannot be the same team.")
                if to_team:
                    errors.extend(_ownership_errors("TRADE", name, pdga, current_owner, from_team or team))

        return ValidationResult(
            ok=not errors,
            errors=tuple(errors),
            details={
                "type": tx_type,
                "team": team,
                "fromTeam": from_team,
                "toTeam": to_team,
                "pdga": pdga,
                "name": name,
                "currentOwner": current_owner or None,
                "isFreeAgent": is_free_agent,
                "rosterCountTeam": snapshot.roster_count(to_team or team),
            },
        )

    def _validate_swap(
        self,
        proposed: ProposedTransaction,
        team: str,
        snapshot: OwnershipSnapshot,
        errors: list[str],
    ) -> ValidationResult:
        drop_pdga = proposed.drop_pdga.strip()
        drop_name = proposed.drop_name.strip()
        add_pdga = proposed.add_pdga.strip()
        add_name = proposed.add_name.strip()

        for field_name, value in (
            ("dropPdga", drop_pdga),
            ("dropName", drop_name),
            ("addPdga", add_pdga),
            ("addName", add_name),
        ):
            if not value:
                errors.append(f"SWAP requires {field_name}.")

        if drop_pdga and add_pdga and drop_pdga == add_pdga:
            errors.append("SWAP rejected: drop player and add player cannot be the same PDGA.")

        # A swap is net-zero, so only a roster already over the cap blocks it.
        roster_count = snapshot.roster_count(team)
        if roster_count > self._roster_cap:
            errors.append(
                f"SWAP rejected: {team} is over roster cap ({roster_count}/{self._roster_cap}). Fix roster first."
            )

        drop_owner = (snapshot.owner_of(drop_pdga) or "") if drop_pdga else ""
        if not drop_owner:
            errors.append(
                f"SWAP rejected: drop player {drop_name} ({drop_pdga}) is not currently owned by any team."
            )
        elif drop_owner != team:
            errors.append(
                f"SWAP rejected: {team} does not own {drop_name} ({drop_pdga}). Current owner: {drop_owner}."
            )

        add_owner = (snapshot.owner_of(add_pdga) or "") if add_pdga else ""
        if add_owner and add_owner != FREE_AGENT:
            errors.append(
                f"SWAP rejected: add player {add_name} ({add_pdga}) is not a Free Agent. Current owner: {add_owner}."
            )

        return ValidationResult(
            ok=not errors,
            errors=tuple(errors),
            details={
                "type": str(TransactionType.SWAP),
                "team": team,
                "dropPdga": drop_pdga,
                "dropName": drop_name,
                "addPdga": add_pdga,
                "addName": add_name,
                "dropCurrentOwner": drop_owner or None,
                "addCurrentOwner": add_owner or None,
                "rosterCountTeam": roster_count,
            },
        )


def _ownership_errors(action: str, name: str, pdga: str, current_owner: str, expected_owner: str) -> list[str]:
    if not current_owner:
        return [f"{action} rejected: player {name} ({pdga}) is not currently owned by any team."]
    if current_owner != expected_owner:
        return [f"{action} rejected: {expected_owner} does not own {name} ({pdga}). Current owner: {current_owner}."]
    return []
