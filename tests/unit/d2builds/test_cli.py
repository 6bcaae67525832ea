"""
Tests for d2builds/cli.py

Tests catalog loading, argument handling and both output formats.
"""
import json

import pytest

from d2builds import cli
from d2builds.cli import CatalogLoadError, build_arg_parser, cli_main, load_catalog
from tests.conftest_utils import CATALOG_VERSION, GRENADE_SCENARIO_SCORE, sample_manifest_records

pytestmark = pytest.mark.unit


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch):
    """Keep cli_main from replacing the root handlers."""
    monkeypatch.setattr(cli, "setup_logging", lambda debug=False: None)


@pytest.fixture
def catalog_file(tmp_path):
    path = tmp_path / "catalog.json"
    path.write_text(json.dumps({"version": CATALOG_VERSION, "items": sample_manifest_records()}), encoding="utf-8")
    return path


@pytest.fixture
def config_file(tmp_path):
    return tmp_path / "config.json"


class TestLoadCatalog:
    def test_versioned_layout(self, catalog_file):
        raw_items, version = load_catalog(catalog_file)
        assert version == CATALOG_VERSION
        assert "1001" in raw_items

    def test_explicit_version_wins(self, catalog_file):
        _, version = load_catalog(catalog_file, "v-override")
        assert version == "v-override"

    def test_bare_mapping_needs_version(self, tmp_path):
        path = tmp_path / "bare.json"
        path.write_text(json.dumps(sample_manifest_records()), encoding="utf-8")

        with pytest.raises(CatalogLoadError, match="no version"):
            load_catalog(path)
        raw_items, version = load_catalog(path, "v2")
        assert version == "v2"
        assert len(raw_items) == len(sample_manifest_records())

    def test_missing_file(self, tmp_path):
        with pytest.raises(CatalogLoadError, match="not found"):
            load_catalog(tmp_path / "nope.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(CatalogLoadError):
            load_catalog(path)

    def test_non_object_root(self, tmp_path):
        path = tmp_path / "list.json"
        path.write_text("[1, 2]", encoding="utf-8")
        with pytest.raises(CatalogLoadError, match="JSON object"):
            load_catalog(path)


class TestArgParser:
    def test_defaults(self):
        args = build_arg_parser().parse_args(["grenade build"])
        assert args.query == "grenade build"
        assert args.limit is None
        assert args.json is False
        assert args.owned is None

    def test_filters_and_owned(self):
        args = build_arg_parser().parse_args(
            ["q", "--class", "titan", "--element", "solar", "--owned", "1001", "2001"]
        )
        assert args.class_filter == "titan"
        assert args.element_filter == "solar"
        assert args.owned == [1001, 2001]

    def test_unknown_class_rejected(self):
        with pytest.raises(SystemExit):
            build_arg_parser().parse_args(["q", "--class", "paladin"])


class TestCliMain:
    def test_list_archetypes(self, capsys):
        assert cli_main(["--list-archetypes"]) == cli.EXIT_OK
        out = capsys.readouterr().out
        assert "grenade_spam" in out
        assert "Grenade Spam" in out
        assert "Healing Support (warlock)" in out

    def test_query_required(self, catalog_file):
        with pytest.raises(SystemExit) as exc_info:
            cli_main(["--catalog", str(catalog_file)])
        assert exc_info.value.code == 2

    def test_catalog_required(self):
        with pytest.raises(SystemExit) as exc_info:
            cli_main(["grenade build"])
        assert exc_info.value.code == 2

    def test_missing_catalog_file(self, tmp_path, capsys):
        code = cli_main(["grenade build", "--catalog", str(tmp_path / "nope.json")])
        assert code == cli.EXIT_USAGE
        assert "error:" in capsys.readouterr().err

    def test_json_output(self, catalog_file, config_file, capsys):
        code = cli_main([
            "grenade spam titan build", "--catalog", str(catalog_file), "--config", str(config_file), "--json",
        ])
        assert code == cli.EXIT_OK

        data = json.loads(capsys.readouterr().out)
        assert data["catalog_version"] == CATALOG_VERSION
        assert data["builds"][0]["synergy_score"] == GRENADE_SCENARIO_SCORE
        assert data["builds"][0]["name"] == "Radiant Core Plate Grenade Build"

    def test_text_output(self, catalog_file, config_file, capsys):
        cli_main(["grenade spam titan build", "--catalog", str(catalog_file), "--config", str(config_file)])
        out = capsys.readouterr().out
        assert "Radiant Core Plate Grenade Build" in out
        assert f"[{GRENADE_SCENARIO_SCORE}/100]" in out
        assert "Stat priority:" in out

    def test_text_output_fallback(self, catalog_file, config_file, capsys):
        cli_main(["invisible hunter", "--catalog", str(catalog_file), "--config", str(config_file)])
        out = capsys.readouterr().out
        assert "No build archetype matched" in out
        assert "Graviton Forfeit" in out
        assert "Fits Invisibility, Exotic item" in out
        assert "Suggestions:" in out

    def test_config_file_applied(self, catalog_file, config_file, capsys):
        config_file.write_text(json.dumps({"matching": {"max_builds": 1}}), encoding="utf-8")
        cli_main([
            "grenade heal build", "--catalog", str(catalog_file), "--config", str(config_file), "--json",
        ])
        assert len(json.loads(capsys.readouterr().out)["builds"]) == 1

    def test_owned_filter(self, catalog_file, config_file, capsys):
        cli_main([
            "grenade spam titan build", "--catalog", str(catalog_file), "--config", str(config_file),
            "--owned", "1001", "--json",
        ])
        assert json.loads(capsys.readouterr().out)["has_builds"] is False
