import json
from pathlib import Path
from typing import List

import httpx
import pytest

from mtg_dividers import __main__ as cli
from mtg_dividers.catalog import ScryfallClient
from mtg_dividers.models import CardRecord

CATALOG = [
    {
        "code": "mh3",
        "name": "Modern Horizons 3",
        "released_at": "2024-06-14",
        "icon_svg_uri": "https://svgs.scryfall.io/sets/mh3.svg",
        "set_type": "draft_innovation",
        "card_count": 303,
    },
    {
        "code": "mh2",
        "name": "Modern Horizons 2",
        "released_at": "2021-06-18",
        "icon_svg_uri": "https://svgs.scryfall.io/sets/mh2.svg",
        "set_type": "draft_innovation",
        "card_count": 303,
    },
    {
        "code": "blb",
        "name": "Bloomburrow",
        "released_at": "2024-08-02",
        "icon_svg_uri": "https://svgs.scryfall.io/sets/blb.svg",
        "set_type": "expansion",
        "card_count": 281,
    },
]


@pytest.fixture
def state_file(tmp_path: Path) -> Path:
    return tmp_path / "sets.json"


@pytest.fixture
def catalog(monkeypatch: pytest.MonkeyPatch) -> List[str]:
    """Serve CATALOG from /sets; returns the requested paths."""
    paths: List[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        paths.append(request.url.path)
        return httpx.Response(200, json={"object": "list", "data": CATALOG})

    def client() -> ScryfallClient:
        return ScryfallClient(
            client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
            base_url="https://api.scryfall.test",
        )

    monkeypatch.setattr(cli, "ScryfallClient", client)
    return paths


def write_state(path: Path, records: List[CardRecord], sort: str = "added") -> None:
    path.write_text(json.dumps({"sort": sort, "sets": [r.to_dict() for r in records]}), encoding="utf-8")


def saved_codes(path: Path) -> List[str]:
    return [item["code"] for item in json.loads(path.read_text(encoding="utf-8"))["sets"]]


class TestStateFile:
    def test_malformed_json_exits_with_error(self, state_file: Path, capsys: pytest.CaptureFixture) -> None:
        state_file.write_text("{not json", encoding="utf-8")

        with pytest.raises(SystemExit) as excinfo:
            cli.main(["--state-file", str(state_file), "list"])

        assert excinfo.value.code == 1
        assert "Could not read" in capsys.readouterr().out

    def test_unknown_sort_exits_with_error(self, state_file: Path, record_factory) -> None:
        state_file.write_text(
            json.dumps({"sort": "color", "sets": [record_factory("mh3").to_dict()]}),
            encoding="utf-8",
        )

        with pytest.raises(SystemExit) as excinfo:
            cli.main(["--state-file", str(state_file), "list"])

        assert excinfo.value.code == 1

    def test_record_without_code_exits_with_error(self, state_file: Path) -> None:
        state_file.write_text(json.dumps({"sets": [{"name": "Nameless"}]}), encoding="utf-8")

        with pytest.raises(SystemExit) as excinfo:
            cli.main(["--state-file", str(state_file), "list"])

        assert excinfo.value.code == 1

    def test_repeated_codes_keep_first(self, state_file: Path, record_factory, capsys: pytest.CaptureFixture) -> None:
        write_state(state_file, [record_factory("mh3"), record_factory("MH3", name="Copy")])

        cli.main(["--state-file", str(state_file), "list"])

        out = capsys.readouterr().out
        assert "1 sets" in out
        assert "Copy" not in out

    def test_missing_file_lists_nothing(self, state_file: Path, capsys: pytest.CaptureFixture) -> None:
        cli.main(["--state-file", str(state_file), "list"])

        assert "No sets added yet" in capsys.readouterr().out
        assert not state_file.exists()


class TestSearch:
    def test_shows_matches_without_saving(
        self, state_file: Path, catalog: List[str], capsys: pytest.CaptureFixture
    ) -> None:
        cli.main(["--state-file", str(state_file), "search", "horizons"])

        out = capsys.readouterr().out
        assert catalog == ["/sets"]
        assert "MH3" in out and "MH2" in out
        assert "BLB" not in out
        assert not state_file.exists()

    def test_add_matches_skips_present(
        self, state_file: Path, catalog: List[str], record_factory, capsys: pytest.CaptureFixture
    ) -> None:
        write_state(state_file, [record_factory("mh3")])

        cli.main(["--state-file", str(state_file), "search", "horizons", "--add"])

        assert "1 set(s) added, 1 already present" in capsys.readouterr().out
        assert saved_codes(state_file) == ["MH3", "MH2"]

    def test_add_with_type_filter(self, state_file: Path, catalog: List[str]) -> None:
        cli.main(["--state-file", str(state_file), "search", "2024", "--type", "expansion", "--add"])

        assert saved_codes(state_file) == ["BLB"]

    def test_no_match(self, state_file: Path, catalog: List[str], capsys: pytest.CaptureFixture) -> None:
        cli.main(["--state-file", str(state_file), "search", "zzz", "--add"])

        assert "No sets match" in capsys.readouterr().out
        assert not state_file.exists()


class TestTypes:
    def test_lists_set_types(self, state_file: Path, catalog: List[str], capsys: pytest.CaptureFixture) -> None:
        cli.main(["--state-file", str(state_file), "types"])

        out = capsys.readouterr().out
        assert "All set types" in out
        assert "Draft Innovation" in out
        assert "Expansion" in out


class TestPrint:
    def test_empty_list_exits_with_warning(self, state_file: Path, capsys: pytest.CaptureFixture) -> None:
        with pytest.raises(SystemExit) as excinfo:
            cli.main(["--state-file", str(state_file), "print"])

        assert excinfo.value.code == 1
        assert "No sets in the list" in capsys.readouterr().out
