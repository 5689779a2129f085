"""Tests for the command line interface."""

import pytest
from conftest import build_document
from typer.testing import CliRunner

from frame_translate.cli import app

runner = CliRunner()


@pytest.fixture
def document_path(tmp_path):
    path = tmp_path / "landing.json"
    build_document().save(path)
    return path


class TestCodecCommands:
    """Test the encode and decode commands."""

    def test_encode(self, document_path):
        result = runner.invoke(app, ["encode", str(document_path), "1:3"])

        assert result.exit_code == 0
        assert "<span style=" in result.output
        assert "Sign up" in result.output

    def test_encode_json(self, document_path):
        result = runner.invoke(app, ["encode", str(document_path), "1:2", "--json"])

        assert result.exit_code == 0
        assert '"text": "bold"' in result.output
        assert '"font_weight": 600' in result.output

    def test_encode_unknown_node(self, document_path):
        result = runner.invoke(app, ["encode", str(document_path), "9:9"])
        assert result.exit_code == 1

    def test_missing_document(self, tmp_path):
        result = runner.invoke(app, ["encode", str(tmp_path / "nope.json"), "1:2"])
        assert result.exit_code == 1
        assert "Document not found" in result.output

    def test_decode(self):
        result = runner.invoke(app, ["decode", "A<em>b</em>"])

        assert result.exit_code == 0
        assert "'A'" in result.output
        assert "font-style:italic" in result.output

    def test_decode_json(self):
        result = runner.invoke(app, ["decode", "--json", "a<br/>b"])

        assert result.exit_code == 0
        assert '"text": "a\\nb"' in result.output

    def test_decode_empty(self):
        result = runner.invoke(app, ["decode", ""])
        assert result.exit_code == 0
        assert "No text" in result.output


class TestInit:
    """Test config file generation."""

    def test_init_creates_file(self, tmp_path):
        path = tmp_path / "config.yaml"

        result = runner.invoke(app, ["init", "--output", str(path)])

        assert result.exit_code == 0
        assert "translate_url" in path.read_text(encoding="utf-8")

    def test_init_refuses_overwrite(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("keep: me\n", encoding="utf-8")

        assert runner.invoke(app, ["init", "--output", str(path)]).exit_code == 1
        assert path.read_text(encoding="utf-8") == "keep: me\n"

        assert runner.invoke(app, ["init", "--output", str(path), "--force"]).exit_code == 0
