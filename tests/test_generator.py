"""Tests for offline generation and the CLI entry points."""

import asyncio
import json

import pytest

import movienet.cli as cli_mod
from movienet.config import BuilderConfig
from movienet.db import NetworkDB
from movienet.errors import MovieNotFoundError, SourceError
from movienet.generator import GenerationResult, generate_network_graph
from movienet.serialization import to_persistable_document

FAST = BuilderConfig(max_depth=3, max_movies_per_level=3, request_delay=0)


class TestGenerateNetworkGraph:
    def test_writes_page(self, tmp_config, fake_source, tmp_path):
        output = tmp_path / "graph.html"
        result = asyncio.run(generate_network_graph(
            "The Dark Knight", output, tmp_config, builder_config=FAST, source=fake_source,
        ))

        assert result.network_size == 6
        assert result.total_connections == 13
        assert result.failed_expansions == 0
        assert result.saved_network_id is None
        page = output.read_text(encoding="utf-8")
        assert '<span id="node-count">6</span>' in page

    def test_seed_not_found_raises(self, tmp_config, fake_source, tmp_path):
        output = tmp_path / "graph.html"
        with pytest.raises(MovieNotFoundError):
            asyncio.run(generate_network_graph(
                "Nothing Like It", output, tmp_config, builder_config=FAST, source=fake_source,
            ))
        assert not output.exists()

    def test_search_failure_surfaces_cause(self, tmp_config, fake_source, tmp_path):
        fake_source.fail_search = True
        with pytest.raises(SourceError, match="HTTP 503"):
            asyncio.run(generate_network_graph(
                "The Dark Knight", tmp_path / "graph.html", tmp_config, builder_config=FAST, source=fake_source,
            ))

    def test_failed_expansions_counted(self, tmp_config, fake_source, tmp_path):
        fake_source.failing_related.add("2")
        result = asyncio.run(generate_network_graph(
            "The Dark Knight", tmp_path / "graph.html", tmp_config, builder_config=FAST, source=fake_source,
        ))
        assert result.failed_expansions == 1
        assert result.network_size == 5

    def test_save_by_name(self, tmp_config, tmp_db, fake_source, tmp_path):
        result = asyncio.run(generate_network_graph(
            "The Dark Knight", tmp_path / "graph.html", tmp_config,
            builder_config=FAST, source=fake_source, db=tmp_db, save_name="Nolan",
        ))
        assert result.saved_network_id is not None
        summary = tmp_db.get_network_summary(result.saved_network_id)
        assert summary.name == "Nolan"
        assert summary.metadata.total_movies == 6

    def test_repr(self, tmp_path):
        result = GenerationResult("Heat", tmp_path / "heat.html")
        result.network_size = 3
        assert "Heat: 3 movies" in repr(result)


@pytest.fixture()
def cli_config(tmp_config, monkeypatch):
    monkeypatch.setattr(cli_mod, "load_config", lambda: tmp_config)
    return tmp_config


@pytest.fixture()
def saved_id(cli_config, sample_network):
    db = NetworkDB(cli_config)
    db.init_db()
    network_id = db.save_network(to_persistable_document(sample_network, name="Nolan"))
    db.close()
    return network_id


class TestCLI:
    def test_generate_main_defaults(self, cli_config, monkeypatch):
        calls = []

        async def fake_generate(query, output, config, builder_config=None, db=None, save_name=None):
            calls.append((query, str(output), builder_config))
            return GenerationResult(query, output)

        monkeypatch.setattr(cli_mod, "generate_network_graph", fake_generate)
        with pytest.raises(SystemExit) as exc_info:
            cli_mod.generate_main([])
        assert exc_info.value.code == 0
        assert calls[0][0] == "The Dark Knight"
        assert calls[0][1] == "movie_network.html"

    def test_generate_main_not_found(self, cli_config, monkeypatch, capsys):
        async def fake_generate(query, *args, **kwargs):
            raise MovieNotFoundError(query)

        monkeypatch.setattr(cli_mod, "generate_network_graph", fake_generate)
        with pytest.raises(SystemExit) as exc_info:
            cli_mod.generate_main(["Nothing Like It", "out.html"])
        assert exc_info.value.code == 1
        assert "Failed to generate network" in capsys.readouterr().out

    def test_generate_overrides(self, cli_config, monkeypatch):
        seen = {}

        async def fake_generate(query, output, config, builder_config=None, db=None, save_name=None):
            seen.update(builder=builder_config, save_name=save_name, db=db)
            return GenerationResult(query, output)

        monkeypatch.setattr(cli_mod, "generate_network_graph", fake_generate)
        cli_mod.main(["generate", "Heat", "heat.html", "--max-depth", "2", "--per-level", "4", "--delay", "0", "--save", "Mann"])
        assert seen["builder"].max_depth == 2
        assert seen["builder"].max_movies_per_level == 4
        assert seen["builder"].request_delay == 0
        assert seen["save_name"] == "Mann"
        assert seen["db"] is not None

    @pytest.mark.parametrize("flags", [["--per-level", "-1"], ["--per-level", "0"], ["--max-depth", "0"], ["--delay", "-1"]])
    def test_generate_rejects_invalid_overrides(self, cli_config, monkeypatch, capsys, flags):
        calls = []

        async def fake_generate(*args, **kwargs):
            calls.append(args)

        monkeypatch.setattr(cli_mod, "generate_network_graph", fake_generate)
        with pytest.raises(SystemExit) as exc_info:
            cli_mod.main(["generate", "Heat", "heat.html", *flags])
        assert exc_info.value.code == 1
        assert calls == []
        assert "Invalid generation settings" in capsys.readouterr().out

    def test_list(self, saved_id, capsys):
        cli_mod.main(["list"])
        out = capsys.readouterr().out
        assert saved_id in out
        assert "Nolan: 5 movies, 4 connections" in out

    def test_list_empty(self, cli_config, capsys):
        cli_mod.main(["list"])
        assert "No saved networks." in capsys.readouterr().out

    def test_export_json_to_stdout(self, saved_id, capsys):
        cli_mod.main(["export", saved_id])
        out = capsys.readouterr().out
        document = json.loads(out[out.index("{"):out.rindex("}") + 1])
        assert document["name"] == "Nolan"
        assert len(document["nodes"]) == 5

    def test_export_html(self, saved_id, tmp_path):
        output = tmp_path / "nolan.html"
        cli_mod.main(["export", saved_id, str(output), "--format", "html"])
        assert "<title>Nolan</title>" in output.read_text(encoding="utf-8")

    def test_export_unknown(self, cli_config):
        with pytest.raises(SystemExit) as exc_info:
            cli_mod.main(["export", "missing"])
        assert exc_info.value.code == 1

    def test_delete(self, saved_id, capsys):
        cli_mod.main(["delete", saved_id])
        assert f"Deleted {saved_id}" in capsys.readouterr().out
        with pytest.raises(SystemExit):
            cli_mod.main(["delete", saved_id])
