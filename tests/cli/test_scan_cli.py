"""CLI tests for the scan and parse commands."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import pytest
from fakes import FakeAccessor, FakeProbe, FakeProvider
from typer.testing import CliRunner

from medialedger.cli.main import app
from medialedger.core.schemas import TitleRecord

runner = CliRunner()

MATRIX_SCENE = "The.Matrix.1999.1080p.BluRay.x264-GRP.mkv"


@pytest.fixture
def library(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """A movie root with one release and an isolated environment."""
    monkeypatch.chdir(tmp_path)
    for name in (
        "MEDIALEDGER_MOVIE_PATHS",
        "MEDIALEDGER_TV_PATHS",
        "MEDIALEDGER_RENAME",
        "MEDIALEDGER_DEBUG",
        "TMDB_API_URI",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("MEDIALEDGER_CATALOG_PATH", str(tmp_path / "catalog.db"))

    root = tmp_path / "movies"
    root.mkdir()
    (root / MATRIX_SCENE).write_bytes(b"x" * 10)
    return root


def _invoke(args: list[str], accessor: FakeAccessor, record: TitleRecord):
    provider = FakeProvider(titles={"The Matrix": record})
    with (
        patch("medialedger.cli.scan.build_provider", return_value=provider),
        patch("medialedger.cli.scan.build_probe", return_value=FakeProbe(accessor)),
    ):
        return runner.invoke(app, args)


def test_scan_json_reports_added_file(
    library: Path, hd_accessor: FakeAccessor, matrix_record: TitleRecord
) -> None:
    result = _invoke(
        ["scan", "--type", "movie", "--root", str(library), "--json"],
        hd_accessor,
        matrix_record,
    )

    assert result.exit_code == 0, result.output
    summary = json.loads(result.stdout)
    assert summary["collection_type"] == "movie"
    assert summary["added"] == 1
    assert summary["items"][0]["target"] == (
        "The.Matrix.1999.1080p.Hybrid.Bluray.H264.DTS-HD.MA.5.1.{tmdb-603}-GRP.mkv"
    )


def test_scan_uses_configured_roots_and_is_idempotent(
    library: Path,
    monkeypatch: pytest.MonkeyPatch,
    hd_accessor: FakeAccessor,
    matrix_record: TitleRecord,
) -> None:
    monkeypatch.setenv("MEDIALEDGER_MOVIE_PATHS", str(library))

    first = _invoke(["scan", "-t", "movie", "--json"], hd_accessor, matrix_record)
    second = _invoke(["scan", "-t", "movie", "--json"], hd_accessor, matrix_record)

    assert json.loads(first.stdout)["added"] == 1
    rerun = json.loads(second.stdout)
    assert (rerun["added"], rerun["skipped"]) == (0, 1)


def test_scan_rename_moves_file(
    library: Path, hd_accessor: FakeAccessor, matrix_record: TitleRecord
) -> None:
    result = _invoke(
        ["scan", "--type", "movie", "--root", str(library), "--rename"],
        hd_accessor,
        matrix_record,
    )

    assert result.exit_code == 0, result.output
    assert "added: 1" in result.stdout
    assert "renamed: 1" in result.stdout
    assert not (library / MATRIX_SCENE).exists()
    assert len(list(library.iterdir())) == 1


def test_scan_without_roots_fails(
    library: Path, hd_accessor: FakeAccessor, matrix_record: TitleRecord
) -> None:
    result = _invoke(["scan", "--type", "tv"], hd_accessor, matrix_record)

    assert result.exit_code == 1
    assert "Run aborted" in result.output


def test_scan_missing_root_fails(
    library: Path, hd_accessor: FakeAccessor, matrix_record: TitleRecord
) -> None:
    result = _invoke(
        ["scan", "--type", "movie", "--root", str(library / "absent")],
        hd_accessor,
        matrix_record,
    )

    assert result.exit_code == 1
    assert "does not exist" in result.output


def test_scan_invalid_configuration_fails(
    library: Path,
    monkeypatch: pytest.MonkeyPatch,
    hd_accessor: FakeAccessor,
    matrix_record: TitleRecord,
) -> None:
    monkeypatch.setenv("TMDB_API_URI", "not-a-url")

    result = _invoke(["scan", "--type", "movie"], hd_accessor, matrix_record)

    assert result.exit_code == 1
    assert "TMDB_API_URI" in result.output


def test_parse_prints_identity_origin_and_group() -> None:
    result = runner.invoke(app, ["parse", MATRIX_SCENE, "--type", "movie"])

    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["identity"]["title"] == "The Matrix"
    assert payload["identity"]["year"] == 1999
    assert payload["origin"] == {"source_type": "Bluray", "streaming_service": "Hybrid"}
    assert payload["group"] == "GRP"
