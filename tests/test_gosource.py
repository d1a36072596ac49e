import pytest

from yamlmigrator.errors import SourceParseError, TraversalError
from yamlmigrator.gosource import find_imports, parse_go, process_go_file, rewrite_source
from yamlmigrator.literals import quote_go_string, unquote_go_string

GROUPED = b"""\
package config

import (
	"fmt"

	// yaml decoding
	yaml "gopkg.in/yaml.v2"
	"gopkg.in/yaml.v3/internal"
)

// Deprecated: gopkg.in/yaml.v2 is frozen.
const legacy = "gopkg.in/yaml.v2"

func Load(b []byte) error {
	var v map[string]any
	fmt.Println(legacy)
	return yaml.Unmarshal(b, &v)
}
"""


def test_single_import_is_rewritten():
    source = b'package main\n\nimport "gopkg.in/yaml.v3"\n'
    result = rewrite_source(source)
    assert result.changed
    assert result.text == b'package main\n\nimport "go.yaml.in/yaml/v3"\n'
    assert not result.formatted


def test_only_import_declarations_are_touched():
    result = rewrite_source(GROUPED)
    assert [ref.path for ref in result.matches] == ["gopkg.in/yaml.v2"]
    text = result.text.decode()
    assert 'yaml "go.yaml.in/yaml/v2"' in text
    assert '"gopkg.in/yaml.v3/internal"' in text
    assert '// Deprecated: gopkg.in/yaml.v2 is frozen.' in text
    assert 'const legacy = "gopkg.in/yaml.v2"' in text
    assert "// yaml decoding" in text


def test_string_constant_alone_is_not_a_match():
    source = b'package main\n\nconst path = "gopkg.in/yaml.v3"\n'
    result = rewrite_source(source)
    assert not result.changed
    assert result.text is source


def test_import_positions():
    refs = find_imports(parse_go(GROUPED), GROUPED)
    assert [(ref.path, ref.line) for ref in refs] == [
        ("fmt", 4),
        ("gopkg.in/yaml.v2", 7),
        ("gopkg.in/yaml.v3/internal", 8),
    ]
    assert refs[1].raw == '"gopkg.in/yaml.v2"'
    assert refs[1].column == 6


def test_raw_and_escaped_literals_are_requoted():
    source = b'package main\n\nimport (\n\t`gopkg.in/yaml.v2`\n\t"gopkg.in/yaml\\x2ev4"\n)\n'
    result = rewrite_source(source)
    assert [ref.replacement for ref in result.matches] == [
        "go.yaml.in/yaml/v2",
        "go.yaml.in/yaml/v4",
    ]
    assert result.text == (
        b'package main\n\nimport (\n\t"go.yaml.in/yaml/v2"\n\t"go.yaml.in/yaml/v4"\n)\n'
    )


def test_rewrite_is_idempotent():
    first = rewrite_source(GROUPED)
    second = rewrite_source(first.text)
    assert not second.changed
    assert second.text == first.text


def test_formatter_output_is_used():
    calls = []

    def formatter(text):
        calls.append(text)
        return text + b"// formatted\n"

    result = rewrite_source(b'package main\n\nimport "gopkg.in/yaml.v3"\n', formatter=formatter)
    assert len(calls) == 1
    assert result.formatted
    assert result.text.endswith(b"// formatted\n")


def test_formatter_failure_keeps_unformatted_text():
    result = rewrite_source(
        b'package main\n\nimport "gopkg.in/yaml.v3"\n', formatter=lambda text: None
    )
    assert result.changed
    assert not result.formatted
    assert b'"go.yaml.in/yaml/v3"' in result.text


def test_formatter_not_called_without_matches():
    def formatter(text):
        raise AssertionError("formatter must not run")

    result = rewrite_source(b'package main\n\nimport "fmt"\n', formatter=formatter)
    assert not result.changed


@pytest.mark.parametrize(
    "source, line",
    [
        (b'package main\n\nimport "gopkg.in/yaml.v3"\n\nfunc main( {\n', None),
        (b'import "gopkg.in/yaml.v3"\n', 1),
        (b'// header\nimport "gopkg.in/yaml.v3"\n\npackage main\n', 2),
        (b'package main\n\nimport "gopkg.in/yaml.v3"\n\nx := 1\n', 5),
        (b'package main\n\nfunc f() {}\n\nimport "gopkg.in/yaml.v3"\n', 5),
        (b'package main\n\npackage other\n', 3),
    ],
)
def test_malformed_source_is_rejected(tmp_path, source, line):
    path = tmp_path / "broken.go"
    path.write_bytes(source)
    with pytest.raises(SourceParseError) as excinfo:
        process_go_file(path)
    assert excinfo.value.path == path
    assert excinfo.value.line is not None
    if line is not None:
        assert excinfo.value.line == line
    assert path.read_bytes() == source


def test_comments_may_precede_package_clause():
    source = b'// Package main does things.\npackage main\n\nimport "gopkg.in/yaml.v3"\n'
    assert rewrite_source(source).changed


def test_modern_syntax_is_accepted():
    source = (
        b"package main\n\n"
        b'import "gopkg.in/yaml.v3"\n\n'
        b"type Box[T any] struct{ v T }\n\n"
        b"func main() {\n"
        b"\tfor i := range 10 {\n"
        b"\t\t_ = Box[int]{v: i}\n"
        b"\t}\n"
        b"}\n"
    )
    result = rewrite_source(source)
    assert [ref.replacement for ref in result.matches] == ["go.yaml.in/yaml/v3"]


def test_unreadable_file(tmp_path):
    with pytest.raises(TraversalError):
        process_go_file(tmp_path / "missing.go")


@pytest.mark.parametrize(
    "literal, value",
    [
        ('"gopkg.in/yaml.v3"', "gopkg.in/yaml.v3"),
        ("`gopkg.in/yaml.v3`", "gopkg.in/yaml.v3"),
        ('"a\\tb\\"c\\\\"', 'a\tb"c\\'),
        ('"\\u00e9\\101"', "éA"),
    ],
)
def test_unquote_go_string(literal, value):
    assert unquote_go_string(literal) == value


@pytest.mark.parametrize("literal", ['"unterminated', "'c'", '"bad \\q escape"', '"a"b"'])
def test_unquote_go_string_rejects_invalid(literal):
    with pytest.raises(ValueError):
        unquote_go_string(literal)


def test_quote_go_string():
    assert quote_go_string('go.yaml.in/yaml/v3') == '"go.yaml.in/yaml/v3"'
    assert quote_go_string('a"b\\') == '"a\\"b\\\\"'
