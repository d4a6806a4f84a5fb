"""
Tests for the command line interface

Tests:
- compile / render / parse commands
- check / validate / suggest commands
- InteractiveCLI resync and save
"""

import json

import pytest
from click.testing import CliRunner

from dsi.cli.interactive import InteractiveCLI
from dsi.schema.models import MappingKind
from main import cli


MAPPINGS = [
    {"id": 1, "source": "product.title", "target": "name", "kind": "PlainText"},
    {
        "id": 2,
        "source": "average_rating",
        "target": "review",
        "kind": "Conditional",
        "conditions": [
            {"field": "review_count", "operator": ">", "value": "5", "join": "AND"},
            {"field": "average_rating", "operator": ">", "value": "4.5", "join": "TERMINAL"},
        ],
    },
]

RECORD = {"product.title": "Linen Shirt", "review_count": 10, "average_rating": 4.8}


# ============================================================================
# FIXTURES
# ============================================================================


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def mappings_file(tmp_path):
    """Mapping set on disk"""
    path = tmp_path / "mappings.json"
    path.write_text(json.dumps(MAPPINGS), encoding="utf-8")
    return path


@pytest.fixture
def record_file(tmp_path):
    """Data record on disk"""
    path = tmp_path / "record.json"
    path.write_text(json.dumps(RECORD), encoding="utf-8")
    return path


@pytest.fixture
def document_file(runner, tmp_path, mappings_file):
    """Compiled document produced by the compile command"""
    path = tmp_path / "product.jsonld"
    result = runner.invoke(cli, ["compile", str(mappings_file), "--output", str(path)])
    assert result.exit_code == 0
    return path


# ============================================================================
# TEST: compile / render / parse
# ============================================================================


class TestDocumentCommands:
    """Tests for the document commands"""

    def test_compile(self, document_file):
        """Test the compiled document on disk"""
        document = json.loads(document_file.read_text(encoding="utf-8"))

        assert document["name"] == "[product.title]"
        assert "ratingValue_Rule" in document["review"]

    def test_compile_with_skeleton(self, runner, tmp_path, mappings_file):
        """Test a custom skeleton"""
        skeleton = tmp_path / "skeleton.json"
        skeleton.write_text(json.dumps({"@type": "Book"}), encoding="utf-8")
        output = tmp_path / "book.jsonld"

        result = runner.invoke(
            cli, ["compile", str(mappings_file), "--skeleton", str(skeleton), "-o", str(output)]
        )
        document = json.loads(output.read_text(encoding="utf-8"))

        assert result.exit_code == 0
        assert document["@type"] == "Book"
        assert "offers" not in document

    def test_render(self, runner, tmp_path, document_file, record_file):
        """Test rendering to a file"""
        output = tmp_path / "rendered.json"
        result = runner.invoke(cli, ["render", str(document_file), str(record_file), "-o", str(output)])
        rendered = json.loads(output.read_text(encoding="utf-8"))

        assert result.exit_code == 0
        assert rendered["name"] == "Linen Shirt"
        assert rendered["review"]["ratingValue"] == 4.8

    def test_parse(self, runner, document_file):
        """Test parsing prints the recovered mappings"""
        result = runner.invoke(cli, ["parse", str(document_file)])
        mappings = json.loads(result.output)

        assert result.exit_code == 0
        assert [(m["source"], m["target"], m["kind"]) for m in mappings] == [
            ("product.title", "name", "PlainText"),
            ("average_rating", "review", "Conditional"),
        ]

    def test_parse_to_file(self, runner, tmp_path, document_file):
        """Test parsing to an exported mappings file"""
        output = tmp_path / "recovered.json"
        result = runner.invoke(cli, ["parse", str(document_file), "-o", str(output)])
        exported = json.loads(output.read_text(encoding="utf-8"))

        assert result.exit_code == 0
        assert exported["metadata"]["total_rules"] == 2
        assert exported["metadata"]["grammar_version"] == 1
        assert len(exported["mappings"]) == 2

    def test_parse_failure(self, runner, tmp_path):
        """Test an unparseable document exits with 1"""
        path = tmp_path / "broken.jsonld"
        path.write_text('{"review": {"ratingValue_Rule": "IF (garbage"}}', encoding="utf-8")

        result = runner.invoke(cli, ["parse", str(path)])

        assert result.exit_code == 1


# ============================================================================
# TEST: check / validate / suggest
# ============================================================================


class TestToolCommands:
    """Tests for helper commands"""

    def test_check_true(self, runner, record_file):
        """Test a true condition exits with 0"""
        result = runner.invoke(cli, ["check", "review_count", ">", "5", "--data", str(record_file)])

        assert result.exit_code == 0
        assert "true" in result.output

    def test_check_false(self, runner, record_file):
        """Test a false condition exits with 1"""
        result = runner.invoke(cli, ["check", "review_total", ">", "5", "--data", str(record_file)])

        assert result.exit_code == 1
        assert "<missing>" in result.output

    def test_check_is_empty_without_value(self, runner, record_file):
        """Test is-empty needs no value argument"""
        result = runner.invoke(cli, ["check", "product.title", "is-empty", "--data", str(record_file)])
        assert result.exit_code == 1

    def test_validate_clean(self, runner, mappings_file):
        """Test a clean mapping set"""
        result = runner.invoke(cli, ["validate", str(mappings_file)])

        assert result.exit_code == 0
        assert "Issues: 0" in result.output

    def test_validate_issues(self, runner, tmp_path):
        """Test a mapping set with issues exits with 1"""
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"mappings": [{"id": 1, "source": "", "target": "name"}]}), encoding="utf-8")

        result = runner.invoke(cli, ["validate", str(path)])

        assert result.exit_code == 1
        assert "missing source" in result.output

    def test_suggest(self, runner):
        """Test target suggestions"""
        result = runner.invoke(cli, ["suggest", "product.metafields.custom.isbn", "xyz123"])

        assert result.exit_code == 0
        assert "product.metafields.custom.isbn → identifier" in result.output
        assert "xyz123 → SKIP" in result.output


# ============================================================================
# TEST: InteractiveCLI
# ============================================================================


class TestInteractiveCLI:
    """Tests for InteractiveCLI non-prompting paths"""

    def test_loads_mappings_file(self, mappings_file):
        """Test the mappings file is loaded on start"""
        tool = InteractiveCLI(str(mappings_file))

        assert len(tool.mapping_set) == 2
        assert tool.mapping_set.get_rule(2).kind == MappingKind.CONDITIONAL

    def test_resync_from_edited_document(self, tmp_path, mappings_file, document_file):
        """Test loading rules from an edited document"""
        edited = document_file.read_text(encoding="utf-8").replace("review_count > 5", "review_count > 8")
        edited_file = tmp_path / "edited.jsonld"
        edited_file.write_text(edited, encoding="utf-8")

        tool = InteractiveCLI(str(mappings_file))
        tool.resync_from_document(str(edited_file))

        review = next(rule for rule in tool.mapping_set if rule.target == "review")
        assert review.conditions[0].value == "8"

    def test_resync_keeps_mappings_on_failure(self, tmp_path, mappings_file):
        """Test a failed parse leaves the current mappings alone"""
        broken = tmp_path / "broken.jsonld"
        broken.write_text("{not json", encoding="utf-8")

        tool = InteractiveCLI(str(mappings_file))
        before = tool.mapping_set
        tool.resync_from_document(str(broken))

        assert tool.mapping_set is before

    def test_save(self, tmp_path):
        """Test saving writes the mappings and the compiled document"""
        target = tmp_path / "out" / "shirt.json"
        tool = InteractiveCLI(str(target))
        tool.mapping_set.add_rule(source="product.title", target="name")

        tool.save()

        saved = json.loads(target.read_text(encoding="utf-8"))
        document = json.loads((tmp_path / "out" / "shirt.jsonld").read_text(encoding="utf-8"))
        assert saved["mappings"][0]["target"] == "name"
        assert document["name"] == "[product.title]"
