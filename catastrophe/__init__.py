"""
Catastrophe - Table companion engine for the Catastrophe card game.

Replaces the physical bookkeeping of a game night:
- Draw and reveal decks with exact copy counts
- Pinned trait cards and who holds them
- Player and community resource ledgers
- Trait-adjusted costs, counters and turn order
"""

__version__ = "0.1.0"
