"""
Tests for the command-line interface.
"""

import json

import pytest

from ..cli import main
from ..engine_core.cards import DeckId
from ..session import deck_filename, parse_snapshot


@pytest.fixture
def deck_dir(tmp_path, definitions):
    """The fixture decks written out as deck files."""
    directory = tmp_path / "decks"
    directory.mkdir()
    for deck, cards in definitions.items():
        (directory / deck_filename(deck)).write_text(
            json.dumps([c.to_dict() for c in cards]), encoding="utf-8"
        )
    return directory


class TestNew:

    def test_new_to_file(self, tmp_path, deck_dir, capsys):
        settings = tmp_path / "settings.json"
        settings.write_text(
            json.dumps({"players": [{"name": "Ana"}, {"name": "Bo"}], "traitDrawCost": 4}),
            encoding="utf-8",
        )
        output = tmp_path / "game.json"

        main(["new", "--decks", str(deck_dir), "--settings", str(settings), "-o", str(output)])

        snapshot = parse_snapshot(output.read_text(encoding="utf-8"))
        assert [p.name for p in snapshot.player_resources] == ["Ana", "Bo"]
        assert snapshot.settings.trait_draw_cost == 4
        assert len(snapshot.wanderer_deck.available_cards) == 2
        assert "Players: Ana, Bo" in capsys.readouterr().out

    def test_new_to_save_dir(self, tmp_path, deck_dir):
        main(["new", "--decks", str(deck_dir), "--save-dir", str(tmp_path / "saves")])
        assert (tmp_path / "saves" / "catastrophe-cards-session.json").exists()

    def test_missing_settings_file(self, tmp_path, deck_dir):
        with pytest.raises(SystemExit):
            main(["new", "--decks", str(deck_dir), "--settings", str(tmp_path / "none.json")])


class TestValidate:

    def test_valid_file(self, deck_dir, capsys):
        main(["validate", str(deck_dir / "individual-traits.json")])
        out = capsys.readouterr().out
        assert "Validating Individual Traits" in out
        assert "OK" in out

    def test_invalid_file_exits(self, tmp_path):
        path = tmp_path / "wanderer.json"
        path.write_text(json.dumps([{"id": "w-1", "displayName": "", "quantity": -1}]), encoding="utf-8")

        with pytest.raises(SystemExit) as exc_info:
            main(["validate", str(path)])
        assert exc_info.value.code == 1

    def test_explicit_deck_title(self, tmp_path, capsys):
        path = tmp_path / "extra.json"
        path.write_text(json.dumps([{"id": "x", "displayName": "Raid", "quantity": 1}]), encoding="utf-8")

        main(["validate", str(path), "--deck", DeckId.DESPERATE_MEASURES.title])
        assert "full reveal" in capsys.readouterr().out

    def test_unrecognized_file_name(self, tmp_path):
        path = tmp_path / "extra.json"
        path.write_text("[]", encoding="utf-8")
        with pytest.raises(SystemExit):
            main(["validate", str(path)])


class TestSummary:

    def test_summary(self, tmp_path, deck_dir, capsys):
        output = tmp_path / "game.json"
        main(["new", "--decks", str(deck_dir), "-o", str(output)])
        capsys.readouterr()

        main(["summary", str(output), "--decks", str(deck_dir)])
        out = capsys.readouterr().out

        assert "Extinction 0/20" in out
        assert "Current turn: creation" in out
        assert "Wanderer: 2 available" in out

    def test_summary_bad_file(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("nope", encoding="utf-8")
        with pytest.raises(SystemExit):
            main(["summary", str(path)])


def test_no_command_prints_help():
    with pytest.raises(SystemExit):
        main([])
