#!/usr/bin/env python3
"""
Minimal CLI for simulating a Banker Pro table.

Runs a host and one in-memory peer per extra player. Every seat is driven
by a scripted player that sends intents the same way a real client would,
so the whole replication path is exercised.
"""

import argparse
import asyncio
import logging
import random
from typing import Dict, Optional

from banker.board import STANDARD_BOARD
from banker.config import GameRules
from banker.lobby import create_room
from banker.protocol import (
    BuildHouse,
    BuyProperty,
    EndTurn,
    PayJailFine,
    PayRent,
    ResolveAuction,
    RollDice,
    StartAuction,
    StartGame,
)
from banker.replication import HostSession, PeerSession, open_memory_peer
from banker.rules import can_build_house
from banker.spaces import SpaceType
from banker.state import GamePhase, GameState

PLAYER_NAMES = ["Alice", "Bob", "Charlie", "Diana", "Eve", "Frank"]
SYNC_TIMEOUT = 1.0


def choose_intent(state: GameState, rng: random.Random, strategy: str):
    """Pick the next intent for the current player."""
    player = state.get_current_player()

    if state.phase == GamePhase.AUCTION:
        space = STANDARD_BOARD.get_space(state.auction.property_id)
        bidders = sorted(state.players, key=lambda p: p.money, reverse=True)
        amount = max(10, space.price // 2)
        return ResolveAuction(amount=amount, winner_id=bidders[0].id)

    if state.phase == GamePhase.ROLL:
        if player.is_in_jail and player.money > state.rules.jail_fine and rng.random() < 0.5:
            return PayJailFine()
        if strategy == "greedy" and rng.random() < 0.3:
            for space_id, ownership in state.properties.items():
                if ownership.owner_id != player.id:
                    continue
                space = STANDARD_BOARD.get_space(space_id)
                if player.money > space.house_cost * 3 and can_build_house(
                    space, player.id, state.properties, state.rules
                ):
                    return BuildHouse(space_id=space_id)
        return RollDice(d1=rng.randint(1, 6), d2=rng.randint(1, 6))

    space = state.current_space()
    ownership = state.properties.get(space.id)
    if space.is_ownable and ownership is None:
        wants = player.money >= space.price and (strategy == "greedy" or rng.random() < 0.5)
        if wants:
            return BuyProperty()
        if state.rules.auction_enabled:
            return StartAuction()
        return EndTurn()
    if space.type == SpaceType.TAX:
        return PayRent()
    if ownership is not None and ownership.owner_id != player.id:
        return PayRent()
    return EndTurn()


def print_table(state: GameState):
    """Print current balances and positions."""
    print("\n" + "=" * 60)
    print(f"ROOM {state.room_code} | phase {state.phase.value}")
    print("=" * 60)
    for index, player in enumerate(state.players):
        marker = ">" if index == state.current_player_index else " "
        owned = sum(1 for p in state.properties.values() if p.owner_id == player.id)
        status = "IN JAIL" if player.is_in_jail else f"at {STANDARD_BOARD.get_space(player.position).name}"
        print(f"{marker} {player.name}: ${player.money} | {owned} properties | {status}")


async def simulate_table(
    num_players: int = 4,
    strategy: str = "greedy",
    seed: Optional[int] = None,
    max_actions: int = 500,
    verbose: bool = True,
    auction_enabled: bool = True,
) -> GameState:
    """
    Simulate a table through the host/peer protocol.

    Args:
        num_players: Number of seats (2-6)
        strategy: 'greedy' buys whatever it can afford, 'random' flips a coin
        seed: Random seed for dice and decisions
        max_actions: Number of intents to send before stopping
        verbose: Whether to print the audit log as it grows
        auction_enabled: Rule toggle for auctions
    """
    rng = random.Random(seed)
    rules = GameRules(auction_enabled=auction_enabled)
    host = HostSession(create_room(PLAYER_NAMES[0], rules=rules))
    host_id = host.state.players[0].id

    peers: Dict[str, PeerSession] = {}
    tasks = []
    for name in PLAYER_NAMES[1:num_players]:
        peer, peer_tasks = await open_memory_peer(host)
        tasks.extend(peer_tasks)
        before = peer.sync_count
        player_id = await peer.join(name)
        await asyncio.wait_for(peer.wait_for_sync(before), SYNC_TIMEOUT)
        peers[player_id] = peer

    await host.submit(StartGame(), sender_id=host_id)
    if verbose:
        print(f"Starting table {host.room_code} with {num_players} players ({strategy}), seed {seed}")

    printed = 0
    for step in range(max_actions):
        state = host.state
        intent = choose_intent(state, rng, strategy)
        actor_id = state.get_current_player().id
        peer = peers.get(actor_id)

        if peer is None:
            await host.submit(intent, sender_id=actor_id)
        else:
            before = peer.sync_count
            await peer.send_intent(intent)
            try:
                await asyncio.wait_for(peer.wait_for_sync(before), SYNC_TIMEOUT)
            except asyncio.TimeoutError:
                # Intent was dropped as stale, move the table along
                print(f"  WARNING: {intent.type} from {actor_id} ignored, ending turn")
                await host.submit(EndTurn())

        if verbose:
            for entry in host.state.logs[printed:]:
                print(f"  [{entry.type.value}] {entry.message}")
            printed = len(host.state.logs)
            if step % 50 == 49:
                print_table(host.state)

    final = host.state
    await host.close()
    for peer in peers.values():
        await peer.close()
    for task in tasks:
        task.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)

    if verbose:
        print_table(final)
    return final


def main():
    """Main entry point for CLI."""
    parser = argparse.ArgumentParser(description="Simulate a Banker Pro table")
    parser.add_argument(
        "--players",
        type=int,
        default=4,
        choices=range(2, 7),
        help="Number of players (2-6)",
    )
    parser.add_argument(
        "--strategy",
        type=str,
        default="greedy",
        choices=["random", "greedy"],
        help="Scripted player behaviour",
    )
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--max-actions", type=int, default=500, help="Intents to play before stopping")
    parser.add_argument("--no-auctions", action="store_true", help="Disable auctions")
    parser.add_argument("--quiet", action="store_true", help="Reduce output verbosity")
    parser.add_argument("--log-level", default="WARNING", help="Python log level")

    args = parser.parse_args()
    logging.basicConfig(level=args.log_level.upper())

    asyncio.run(
        simulate_table(
            num_players=args.players,
            strategy=args.strategy,
            seed=args.seed,
            max_actions=args.max_actions,
            verbose=not args.quiet,
            auction_enabled=not args.no_auctions,
        )
    )


if __name__ == "__main__":
    main()
