"""
Catastrophe CLI - Command-line interface for the engine.

Usage:
    catastrophe new --decks <dir> [--settings <file>] [-o <file>]   Start a fresh save
    catastrophe validate <deck_file> [--deck <title>]               Validate a deck file
    catastrophe summary <snapshot_file> [--decks <dir>]             Summarize a save
    catastrophe serve [--host H] [--port P]                         Run the HTTP API
"""

import argparse
import json
import logging
import os
import sys
from pathlib import Path


CATASTROPHE_LOG_LEVEL = os.getenv("CATASTROPHE_LOG_LEVEL", "INFO")


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Catastrophe - Table companion for the Catastrophe card game",
        prog="catastrophe",
    )
    parser.add_argument(
        "--log-level",
        default=CATASTROPHE_LOG_LEVEL,
        help="Logging level (default: %(default)s)",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # New command
    new_parser = subparsers.add_parser("new", help="Write a fresh game snapshot")
    new_parser.add_argument("--decks", required=True, help="Directory of deck JSON files")
    new_parser.add_argument("--settings", help="Settings JSON file")
    new_parser.add_argument("--output", "-o", help="Snapshot file (default: save directory)")
    new_parser.add_argument("--save-dir", help="Save directory for the session file")

    # Validate command
    validate_parser = subparsers.add_parser("validate", help="Validate a deck file")
    validate_parser.add_argument("deck_file", help="Path to a deck JSON file")
    validate_parser.add_argument("--deck", help="Deck title (default: from file name)")

    # Summary command
    summary_parser = subparsers.add_parser("summary", help="Summarize a snapshot")
    summary_parser.add_argument("snapshot_file", help="Path to a snapshot JSON file")
    summary_parser.add_argument("--decks", help="Directory of deck JSON files")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)
    serve_parser.add_argument("--reload", action="store_true")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "new":
        return cmd_new(args)
    elif args.command == "validate":
        return cmd_validate(args)
    elif args.command == "summary":
        return cmd_summary(args)
    elif args.command == "serve":
        return cmd_serve(args)
    else:
        parser.print_help()
        sys.exit(1)


def cmd_new(args):
    """Start a fresh game from settings and deck files."""
    from .engine_core import GameSettings, GameState
    from .session import SnapshotStore, dump_snapshot, load_deck_directory

    settings = GameSettings()
    if args.settings:
        try:
            with open(args.settings, "r", encoding="utf-8") as f:
                settings = GameSettings.from_dict(json.load(f))
        except FileNotFoundError:
            print(f"Error: File not found: {args.settings}")
            sys.exit(1)

    definitions = load_deck_directory(args.decks)
    state = GameState.new_game(settings, definitions)

    if args.output:
        Path(args.output).write_text(dump_snapshot(state), encoding="utf-8")
        print(f"Wrote new game to {args.output}")
    else:
        store = SnapshotStore(args.save_dir)
        store.save(state)
        print(f"Wrote new game to {store.session_path}")

    print(f"Players: {', '.join(settings.players) or '(none)'}")
    for deck, cards in definitions.items():
        print(f"  {deck.title}: {sum(c.quantity for c in cards)} cards")


def cmd_validate(args):
    """Validate a deck definition file."""
    from .engine_core import DeckId, validate_definitions
    from .session import deck_filename, load_deck_file

    path = Path(args.deck_file)
    if args.deck:
        try:
            deck = DeckId.from_title(args.deck)
        except ValueError:
            print(f"Error: Unknown deck: {args.deck}")
            sys.exit(1)
    else:
        matches = [d for d in DeckId if deck_filename(d) == path.name]
        if not matches:
            print(f"Error: Cannot tell which deck {path.name} is; pass --deck")
            sys.exit(1)
        deck = matches[0]

    try:
        cards = load_deck_file(path)
    except FileNotFoundError:
        print(f"Error: File not found: {args.deck_file}")
        sys.exit(1)
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)

    result = validate_definitions(deck, cards)
    print(f"Validating {deck.title}: {len(cards)} definitions")

    if result.warnings:
        print("\nWarnings:")
        for w in result.warnings:
            print(f"  - {w}")

    if result.errors:
        print("\nErrors:")
        for e in result.errors:
            print(f"  - {e}")
        sys.exit(1)

    print("OK")


def cmd_summary(args):
    """Print a human-readable summary of a snapshot."""
    from .engine_core import DeckId
    from .session import SnapshotError, from_snapshot, load_deck_directory, parse_snapshot

    definitions = load_deck_directory(args.decks) if args.decks else {}
    try:
        snapshot = parse_snapshot(Path(args.snapshot_file).read_text(encoding="utf-8"))
        state = from_snapshot(snapshot, definitions)
    except FileNotFoundError:
        print(f"Error: File not found: {args.snapshot_file}")
        sys.exit(1)
    except SnapshotError as e:
        print(f"Error: {e}")
        sys.exit(1)

    print(f"Snapshot v{snapshot.version} ({snapshot.timestamp})")
    print(
        f"Round {state.counters.round}  "
        f"Extinction {state.counters.extinction}/{state.settings.extinction_counter_max}  "
        f"Civilization {state.counters.civilization}/{state.settings.civilization_counter_max}"
    )
    if state.outcome:
        print(f"Outcome: {state.outcome.value}")
    print(f"Current turn: {state.current_turn}")

    print("\nPlayers:")
    for player in state.players:
        tags = [b.value for b in state.badges.badges_for(player.name)]
        if player.name in state.wanderer_players:
            tags.append("wanderer")
        suffix = f" [{', '.join(tags)}]" if tags else ""
        print(f"  {player.name}: {player.resources}{suffix}")
    if state.communities:
        print("\nCommunities:")
        for community in state.communities:
            members = ", ".join(community.member_player_names)
            print(f"  {community.name} [{community.id}]: {community.resources} ({members})")
    if len(state.pins):
        print("\nPinned:")
        for pinned in state.pins.cards:
            holder = (
                state.assignments.player_for(pinned.pinned_id)
                or state.assignments.community_for(pinned.pinned_id)
                or "unassigned"
            )
            print(f"  {pinned.pinned_id} {pinned.display_name} ({pinned.deck.title}) -> {holder}")

    print("\nDecks:")
    for deck in DeckId:
        pools = state.deck(deck)
        print(
            f"  {deck.title}: {len(pools.available_cards)} available, "
            f"{len(pools.revealed_cards)} revealed, {len(pools.discarded_cards)} discarded"
        )


def cmd_serve(args):
    """Run the HTTP API with uvicorn."""
    import uvicorn

    uvicorn.run(
        "catastrophe.api.app:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=args.log_level.lower(),
    )


if __name__ == "__main__":
    main()
