import json
from datetime import datetime, timezone

import main
from fakes import dated, make_item


def utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


class TestArgs:
    def test_defaults(self):
        args = main.parse_args([])
        assert args.query is None
        assert args.limit is None
        assert not args.classify
        assert not args.json

    def test_window_flags(self):
        args = main.parse_args(["--from", "2024-06-01", "--to", "2024-06-10", "-n", "5", "-q", "gemini"])
        assert (args.date_from, args.date_to, args.limit, args.query) == ("2024-06-01", "2024-06-10", 5, "gemini")


class TestOutput:
    def test_format_dated(self):
        it = dated("Gemini 2 is here", utc(2024, 6, 10, 9, 30), source_name="Google DeepMind")
        text = main.format_item(it)
        assert text.startswith("2024-06-10 09:30  Gemini 2 is here  (Google DeepMind)")
        assert it.url in text

    def test_format_undated_with_category(self):
        text = main.format_item(make_item(title="Note", category="updates"))
        assert text.startswith("undated  [updates] Note")

    def test_format_shows_inferred_tags(self):
        it = dated("Gemini 2 is here", utc(2024, 6, 10, 9, 30))
        assert main.format_item(it).endswith(f"{it.url}  #LLM")

    def test_format_prefers_declared_tags(self):
        it = make_item(title="GPT notes", tags=("Agents", "Research"))
        assert main.format_item(it).endswith("#Agents #Research")

    def test_format_without_tags(self):
        it = make_item(title="Office opening")
        assert main.format_item(it).endswith(it.url)

    def test_json(self, capsys):
        main.print_items([make_item(title="Note")], as_json=True, by_day=False)
        out = json.loads(capsys.readouterr().out)
        assert out["count"] == 1
        assert out["items"][0]["title"] == "Note"
        assert out["items"][0]["date"] is None

    def test_by_day_json(self, capsys):
        items = [dated("One", utc(2024, 6, 10)), dated("Two", utc(2024, 6, 10, 5))]
        main.print_items(items, as_json=True, by_day=True)
        out = json.loads(capsys.readouterr().out)
        assert out[0]["ymd"] == "2024-06-10"
        assert [i["title"] for i in out[0]["items"]] == ["Two", "One"]


class TestSourcesListing:
    def test_lists_without_fetching(self, capsys):
        assert main.main(["--sources", "--json"]) == 0
        rows = json.loads(capsys.readouterr().out)
        assert any(r["id"] == "openai" for r in rows)
