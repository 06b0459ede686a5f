"""Reduce net balances to a short list of settling transfers."""

import heapq
import logging
from collections.abc import Iterable, Mapping, Sequence
from decimal import Decimal

from .ledger import member_id_of
from .models import TOLERANCE, Member, Transfer

logger = logging.getLogger(__name__)


def simplify(
    balances: Mapping[str, Decimal],
    members: Sequence[Member | str] = (),
    tolerance: Decimal = TOLERANCE,
) -> list[Transfer]:
    """
    Turn net balances into payer -> payee transfers.

    Greedy matching: the largest remaining debtor pays the largest remaining
    creditor the smaller of their two magnitudes, and whoever is left within
    tolerance of zero drops out. Each step settles at least one party, so the
    result has at most (#debtors + #creditors - 1) transfers.

    This is a heuristic. It is minimal for plain netting but makes no attempt
    to honour extra constraints such as preferred payer pairs.

    Args:
        balances: Net balance per member id (positive = is owed)
        members: Member order used to break ties; ids missing from it
            follow in balance order
        tolerance: Balances within this distance of zero are settled

    Returns:
        Transfers in the order they were matched. Never raises; empty when
        everyone is settled.
    """
    order = list(dict.fromkeys(member_id_of(member) for member in members))
    known = set(order)
    order += [member_id for member_id in balances if member_id not in known]

    # Heap entries: (-magnitude, member position, member id)
    debtors: list[tuple[Decimal, int, str]] = []
    creditors: list[tuple[Decimal, int, str]] = []
    for position, member_id in enumerate(order):
        balance = balances.get(member_id, Decimal("0"))
        if balance < -tolerance:
            debtors.append((balance, position, member_id))
        elif balance > tolerance:
            creditors.append((-balance, position, member_id))

    heapq.heapify(debtors)
    heapq.heapify(creditors)

    transfers = []
    while debtors and creditors:
        debt, debtor_pos, debtor_id = heapq.heappop(debtors)
        credit, creditor_pos, creditor_id = heapq.heappop(creditors)

        amount = min(-debt, -credit)
        if amount > tolerance:
            transfers.append(
                Transfer(from_member_id=debtor_id, to_member_id=creditor_id, amount=amount)
            )

        remaining_debt = -debt - amount
        remaining_credit = -credit - amount
        if remaining_debt > tolerance:
            heapq.heappush(debtors, (-remaining_debt, debtor_pos, debtor_id))
        if remaining_credit > tolerance:
            heapq.heappush(creditors, (-remaining_credit, creditor_pos, creditor_id))

    leftover = sum(-entry[0] for entry in debtors + creditors)
    if leftover:
        logger.warning(
            f"Balances do not net to zero; {leftover} left unsettled "
            f"across {len(debtors) + len(creditors)} members"
        )

    logger.debug(f"Simplified {len(order)} balances into {len(transfers)} transfers")
    return transfers


def apply_transfers(
    balances: Mapping[str, Decimal], transfers: Iterable[Transfer]
) -> dict[str, Decimal]:
    """Return the balances that remain once the transfers are paid."""
    remaining = dict(balances)
    for transfer in transfers:
        remaining[transfer.from_member_id] = (
            remaining.get(transfer.from_member_id, Decimal("0")) + transfer.amount
        )
        remaining[transfer.to_member_id] = (
            remaining.get(transfer.to_member_id, Decimal("0")) - transfer.amount
        )
    return remaining
