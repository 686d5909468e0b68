"""
Turn engine: the authoritative reducer.

``reduce`` takes the current GameState and one intent and returns the next
GameState. Intents are assumed to come from a legitimate client; the reducer
only drops those that no longer fit the phase, the sender or the board
(stale intents), and never checks affordability, so balances may go negative.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional, Tuple

from banker import lobby
from banker.board import BOARD_SIZE, JAIL_POSITION, STANDARD_BOARD
from banker.eventlog import LogType
from banker.player import PropertyState
from banker.protocol import (
    BuildHouse,
    BuyProperty,
    EndTurn,
    Intent,
    PayJailFine,
    PayRent,
    PlayerJoin,
    ProposeTrade,
    ResolveAuction,
    RollDice,
    StartAuction,
    StartGame,
    TurnIntent,
)
from banker.rules import calculate_rent, can_build_house, tax_amount
from banker.spaces import SpaceType
from banker.state import IN_GAME_PHASES, AuctionState, GamePhase, GameState

logger = logging.getLogger(__name__)

SPEEDING_LIMIT = 3

# Intents only the player whose turn it is may send
_CURRENT_PLAYER_ONLY = (RollDice, BuyProperty, StartAuction, PayRent, EndTurn, PayJailFine)


def apply_intent(state: GameState, intent: Intent, sender_id: Optional[str] = None) -> GameState:
    """Apply any peer intent, lobby or in-game.

    Raises:
        AdmissionError: For a refused join or start request
    """
    if isinstance(intent, PlayerJoin):
        return lobby.admit_player(state, intent.player)
    if isinstance(intent, StartGame):
        return lobby.start_game(state, sender_id)
    return reduce(state, intent, sender_id)


def reduce(state: GameState, intent: TurnIntent, sender_id: Optional[str] = None) -> GameState:
    """
    Apply one in-game intent to the state.

    Args:
        state: Current authoritative state
        intent: Validated intent
        sender_id: Player that sent the intent, None when unknown (trusted local caller)

    Returns:
        The next state, or ``state`` itself when the intent does not apply
    """
    if state.phase not in IN_GAME_PHASES:
        return _drop(state, intent, f"phase is {state.phase.value}")

    if isinstance(intent, _CURRENT_PLAYER_ONLY):
        if sender_id is not None and sender_id != state.get_current_player().id:
            return _drop(state, intent, f"{sender_id} is not the current player")

    if isinstance(intent, RollDice):
        return _roll(state, intent)
    elif isinstance(intent, BuyProperty):
        return _buy(state, intent)
    elif isinstance(intent, StartAuction):
        return _start_auction(state, intent)
    elif isinstance(intent, ResolveAuction):
        return _resolve_auction(state, intent)
    elif isinstance(intent, PayRent):
        return _pay_rent(state, intent)
    elif isinstance(intent, EndTurn):
        return _end_turn(state, intent)
    elif isinstance(intent, ProposeTrade):
        return _trade(state, intent)
    elif isinstance(intent, PayJailFine):
        return _pay_jail_fine(state, intent)
    elif isinstance(intent, BuildHouse):
        return _build_house(state, intent, sender_id)

    raise TypeError(f"Unhandled intent: {intent!r}")


def _drop(state: GameState, intent: TurnIntent, reason: str) -> GameState:
    logger.debug("Ignoring %s: %s", intent.type, reason)
    return state


# ---- Turn advancement ----


def _next_turn(state: GameState) -> GameState:
    next_index = (state.current_player_index + 1) % len(state.players)
    return replace(
        state,
        current_player_index=next_index,
        phase=GamePhase.ROLL,
        last_roll_was_double=False,
        consecutive_doubles=0,
    )


def _end_of_action(state: GameState) -> GameState:
    """Shared tail after buying, auctions, rent and explicit end of turn."""
    player = state.get_current_player()
    if state.last_roll_was_double and not player.is_in_jail:
        state = state.with_log("SYSTEM: Doubles detected. Bonus roll granted.", LogType.INFO)
        return replace(state, phase=GamePhase.ROLL)
    return _next_turn(state)


def _send_to_jail(state: GameState) -> GameState:
    state = state.with_player(
        state.current_player_index,
        position=JAIL_POSITION,
        is_in_jail=True,
        jail_turns=0,
    )
    return replace(state, last_roll_was_double=False, consecutive_doubles=0)


# ---- Dice ----


def _roll(state: GameState, intent: RollDice) -> GameState:
    if state.phase != GamePhase.ROLL:
        return _drop(state, intent, "dice already rolled")

    d1, d2 = intent.d1, intent.d2

    player = state.get_current_player()
    is_double = d1 == d2
    total = d1 + d2

    if player.is_in_jail:
        if is_double:
            state = state.with_log(f"{player.name} rolled doubles [{d1}-{d2}] -> Escaped Jail", LogType.ALERT)
            return _move(state, total, (d1, d2), escaped_jail=True, doubles=0)

        state = state.with_player(state.current_player_index, jail_turns=player.jail_turns + 1)
        state = state.with_log(f"{player.name} rolled [{d1}-{d2}] -> Jail Sentence Continues", LogType.INFO)
        state = replace(state, dice=(d1, d2), last_roll_was_double=False, consecutive_doubles=0)
        return _next_turn(state)

    doubles = state.consecutive_doubles + 1 if is_double else 0
    if doubles >= SPEEDING_LIMIT:
        state = state.with_log(f"SPEEDING DETECTED: {player.name} -> JAIL", LogType.ALERT)
        state = _send_to_jail(replace(state, dice=(d1, d2)))
        return _next_turn(state)

    return _move(state, total, (d1, d2), escaped_jail=False, doubles=doubles)


def _move(
    state: GameState,
    steps: int,
    dice: Tuple[int, int],
    *,
    escaped_jail: bool,
    doubles: int,
) -> GameState:
    index = state.current_player_index
    player = state.players[index]
    new_position = (player.position + steps) % BOARD_SIZE
    passed_go = new_position < player.position and not escaped_jail

    money = player.money + state.rules.go_salary if passed_go else player.money
    state = state.with_player(index, position=new_position, money=money, is_in_jail=False, jail_turns=0)
    state = replace(
        state,
        dice=dice,
        phase=GamePhase.ACTION,
        last_roll_was_double=dice[0] == dice[1],
        consecutive_doubles=doubles,
    )

    space = STANDARD_BOARD.get_space(new_position)
    state = state.with_log(f"{player.name} rolled [{dice[0]}-{dice[1]}] -> {space.name}", LogType.MOVE)
    if passed_go:
        state = state.with_log(
            f"GO PASSED: {player.name} credited ${state.rules.go_salary}", LogType.TRANSACTION
        )
    return state


# ---- Landing actions ----


def _buy(state: GameState, intent: BuyProperty) -> GameState:
    if state.phase != GamePhase.ACTION:
        return _drop(state, intent, "nothing to buy before rolling")

    space = state.current_space()
    if not space.is_ownable or space.id in state.properties:
        return _drop(state, intent, f"{space.name} is not for sale")

    index = state.current_player_index
    player = state.players[index]
    state = state.with_player(index, money=player.money - space.price)
    state = state.with_property(space.id, PropertyState(owner_id=player.id))
    state = state.with_log(f"ACQUIRED: {player.name} bought {space.name} for ${space.price}", LogType.TRANSACTION)
    return _end_of_action(state)


def _start_auction(state: GameState, intent: StartAuction) -> GameState:
    if state.phase != GamePhase.ACTION:
        return _drop(state, intent, "auctions start after landing")
    if not state.rules.auction_enabled:
        return _drop(state, intent, "auctions are disabled")

    space = state.current_space()
    if not space.is_ownable or space.id in state.properties:
        return _drop(state, intent, f"{space.name} cannot be auctioned")

    state = state.with_log(f"AUCTION OPENED: {space.name}", LogType.INFO)
    return replace(state, phase=GamePhase.AUCTION, auction=AuctionState(active=True, property_id=space.id))


def _resolve_auction(state: GameState, intent: ResolveAuction) -> GameState:
    if state.phase != GamePhase.AUCTION or state.auction is None:
        return _drop(state, intent, "no auction running")

    winner_index = state.index_of(intent.winner_id)
    if winner_index is None:
        return _drop(state, intent, f"unknown winner {intent.winner_id}")

    space = STANDARD_BOARD.get_space(state.auction.property_id)
    winner = state.players[winner_index]
    state = state.with_player(winner_index, money=winner.money - intent.amount)
    state = state.with_property(space.id, PropertyState(owner_id=winner.id))
    state = state.with_log(
        f"AUCTION CLOSED: {winner.name} won {space.name} for ${intent.amount}", LogType.TRANSACTION
    )
    state = replace(
        state,
        auction=None,
        phase=GamePhase.ACTION if state.has_rolled else GamePhase.ROLL,
    )
    return _end_of_action(state)


def _pay_rent(state: GameState, intent: PayRent) -> GameState:
    if state.phase != GamePhase.ACTION:
        return _drop(state, intent, "rent is paid after landing")

    index = state.current_player_index
    payer = state.players[index]
    space = state.current_space()

    if space.type == SpaceType.TAX:
        amount = tax_amount(space)
        state = state.with_player(index, money=payer.money - amount)
        state = state.with_log(f"TAX PAID: {payer.name} - ${amount}", LogType.TRANSACTION)
        return _end_of_action(state)

    ownership = state.properties.get(space.id)
    if ownership is None or ownership.owner_id == payer.id:
        return _drop(state, intent, f"no rent due on {space.name}")
    owner_index = state.index_of(ownership.owner_id)
    if owner_index is None:
        return _drop(state, intent, f"owner {ownership.owner_id} left the room")

    rent = calculate_rent(space, ownership.owner_id, state.properties, state.dice_total)
    owner = state.players[owner_index]
    state = state.with_player(index, money=payer.money - rent)
    state = state.with_player(owner_index, money=owner.money + rent)
    state = state.with_log(f"RENT: {payer.name} -> {owner.name} [${rent}]", LogType.TRANSACTION)
    return _end_of_action(state)


def _end_turn(state: GameState, intent: EndTurn) -> GameState:
    if state.phase == GamePhase.AUCTION:
        state = state.with_log("AUCTION CANCELLED", LogType.INFO)
        return _end_of_action(replace(state, auction=None, phase=GamePhase.ACTION))

    if state.phase != GamePhase.ACTION:
        return _drop(state, intent, "roll before ending the turn")

    if state.current_space().type == SpaceType.GO_TO_JAIL:
        player = state.get_current_player()
        state = state.with_log(f"{player.name} -> JAIL", LogType.ALERT)
        return _next_turn(_send_to_jail(state))

    return _end_of_action(state)


def _pay_jail_fine(state: GameState, intent: PayJailFine) -> GameState:
    player = state.get_current_player()
    if state.phase != GamePhase.ROLL or not player.is_in_jail:
        return _drop(state, intent, f"{player.name} is not waiting in jail")

    fine = state.rules.jail_fine
    state = state.with_player(
        state.current_player_index,
        money=player.money - fine,
        is_in_jail=False,
        jail_turns=0,
    )
    return state.with_log(f"BAIL PAID: {player.name} - ${fine}", LogType.TRANSACTION)


# ---- Trades and building ----


def _trade(state: GameState, intent: ProposeTrade) -> GameState:
    offer = intent.offer
    from_index = state.index_of(offer.from_player_id)
    to_index = state.index_of(offer.to_player_id)
    if from_index is None or to_index is None or from_index == to_index:
        return _drop(state, intent, "trade needs two different players")

    for space_id in offer.offered_properties:
        ownership = state.properties.get(space_id)
        if ownership is None or ownership.owner_id != offer.from_player_id:
            return _drop(state, intent, f"space {space_id} is not the proposer's")
    for space_id in offer.requested_properties:
        ownership = state.properties.get(space_id)
        if ownership is None or ownership.owner_id != offer.to_player_id:
            return _drop(state, intent, f"space {space_id} is not the counterpart's")

    sender = state.players[from_index]
    receiver = state.players[to_index]
    state = state.with_player(
        from_index, money=sender.money - offer.offered_cash + offer.requested_cash
    )
    state = state.with_player(
        to_index, money=receiver.money + offer.offered_cash - offer.requested_cash
    )

    properties = dict(state.properties)
    for space_id in offer.offered_properties:
        properties[space_id] = replace(properties[space_id], owner_id=receiver.id)
    for space_id in offer.requested_properties:
        properties[space_id] = replace(properties[space_id], owner_id=sender.id)
    state = replace(state, properties=properties)

    return state.with_log(f"TRADE EXECUTED: {sender.name} <-> {receiver.name}", LogType.TRANSACTION)


def _build_house(state: GameState, intent: BuildHouse, sender_id: Optional[str]) -> GameState:
    if state.phase not in (GamePhase.ROLL, GamePhase.ACTION):
        return _drop(state, intent, "building is not allowed during an auction")

    ownership = state.properties.get(intent.space_id)
    if ownership is None:
        return _drop(state, intent, f"space {intent.space_id} is unowned")
    if sender_id is not None and sender_id != ownership.owner_id:
        return _drop(state, intent, f"{sender_id} does not own space {intent.space_id}")

    space = STANDARD_BOARD.get_space(intent.space_id)
    if not can_build_house(space, ownership.owner_id, state.properties, state.rules):
        return _drop(state, intent, f"cannot build on {space.name}")

    owner_index = state.index_of(ownership.owner_id)
    owner = state.players[owner_index]
    houses = ownership.houses + 1
    state = state.with_player(owner_index, money=owner.money - space.house_cost)
    state = state.with_property(space.id, replace(ownership, houses=houses))
    building = "a hotel" if houses == 5 else f"house {houses}"
    return state.with_log(
        f"CONSTRUCTION: {owner.name} built {building} on {space.name} for ${space.house_cost}",
        LogType.TRANSACTION,
    )
