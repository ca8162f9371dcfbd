"""Unit tests for directive extraction."""

import pytest

from jarbang.source.directives import (
    DirectiveError,
    KeyValue,
    check_dependency_lines,
    collect_options,
    collect_raw_options,
    directive_tokens,
    extract_dependencies,
    extract_key_values,
    extract_prefixed_tokens,
    extract_repositories,
    is_dependency_declaration,
    property_replacer,
    replace_properties,
    split_lines,
    to_key_value,
)


class TestLineDirectives:
    """Tests for the //PREFIX line form."""

    def test_single_dependency(self):
        assert extract_dependencies("//DEPS org.example:lib:1.0") == ["org.example:lib:1.0"]

    def test_separators(self):
        line = "//DEPS a:b:1, c:d:2;e:f:3   g:h:4"
        assert extract_dependencies(line) == ["a:b:1", "c:d:2", "e:f:3", "g:h:4"]

    def test_inline_comment_is_ignored(self):
        line = "//DEPS org.example:lib:1.0 // the main library"
        assert extract_dependencies(line) == ["org.example:lib:1.0"]

    def test_directive_keyword_not_a_token(self):
        assert directive_tokens("//SOURCES a.java b.java") == ["a.java", "b.java"]

    def test_prefixed_tokens_across_lines(self):
        lines = ["//FILES a.txt", "class X {}", "//FILES b.txt c.txt"]
        assert extract_prefixed_tokens(lines, "//FILES ") == ["a.txt", "b.txt", "c.txt"]

    def test_split_lines_handles_crlf(self):
        assert split_lines("a\r\nb\nc") == ["a", "b", "c"]

    def test_misspelled_deps_rejected(self):
        with pytest.raises(DirectiveError, match="//DEPS"):
            check_dependency_lines(["// DEPS x:y:1"])

    def test_repositories(self):
        assert extract_repositories("//REPOS mavenCentral,acme=https://repo.acme.org") == [
            "mavenCentral",
            "acme=https://repo.acme.org",
        ]


class TestAnnotationDirectives:
    """Tests for @Grab / @GrabResolver."""

    def test_grab_pairs_and_single(self):
        lines = [
            '@Grab(group="g", module="m", version="1")',
            '@Grab("g:m:2")',
        ]
        deps = []
        for line in lines:
            assert is_dependency_declaration(line)
            deps.extend(extract_dependencies(line))
        assert deps == ["g:m:1", "g:m:2"]

    def test_grab_classifier_and_ext(self):
        line = '@Grab(group="g", module="m", version="1", classifier="jdk8", ext="pom")'
        assert extract_dependencies(line) == ["g:m:1:jdk8@pom"]

    def test_commented_out_grab_ignored(self):
        assert extract_dependencies('// @Grab("g:m:1")') == []

    def test_grab_resolver_name_defaults_to_root(self):
        line = '@GrabResolver(root="https://repo.acme.org")'
        assert extract_repositories(line) == ["https://repo.acme.org=https://repo.acme.org"]

    def test_grab_resolver_with_name(self):
        line = '@GrabResolver(name="acme", root="https://repo.acme.org")'
        assert extract_repositories(line) == ["acme=https://repo.acme.org"]


class TestOptions:
    """Tests for option categories."""

    def test_java_does_not_match_java_options(self):
        lines = ["//JAVA 11+", "//JAVA_OPTIONS -Xmx1g"]
        assert collect_raw_options(lines, "JAVA", environ={}) == ["11+"]
        assert collect_raw_options(lines, "JAVA_OPTIONS", environ={}) == ["-Xmx1g"]

    def test_environment_appended_last(self):
        lines = ["//JAVA_OPTIONS -Xmx1g"]
        env = {"JBANG_JAVA_OPTIONS": "-Dfoo=bar"}
        assert collect_options(lines, "JAVA_OPTIONS", environ=env) == ["-Xmx1g", "-Dfoo=bar"]

    def test_quoted_options_kept_together(self):
        lines = ['//JAVAC_OPTIONS -parameters -Xlint:"all, -serial"']
        assert collect_options(lines, "JAVAC_OPTIONS", environ={}) == [
            "-parameters",
            "-Xlint:all, -serial",
        ]

    def test_unbalanced_quote_rejected(self):
        with pytest.raises(DirectiveError, match="JAVA_OPTIONS"):
            collect_options(["//JAVA_OPTIONS -Dname=O'Brien"], "JAVA_OPTIONS", environ={})

    def test_unbalanced_quote_from_environment_rejected(self):
        env = {"JBANG_JAVAC_OPTIONS": '-Xlint:"all'}
        with pytest.raises(DirectiveError, match="JAVAC_OPTIONS"):
            collect_options([], "JAVAC_OPTIONS", environ=env)

    def test_bare_category(self):
        assert collect_raw_options(["//CDS"], "CDS", environ={}) == [""]

    def test_key_values(self):
        raw = ["Can-Redefine-Classes=true Can-Retransform-Classes"]
        assert extract_key_values(raw) == [
            KeyValue("Can-Redefine-Classes", "true"),
            KeyValue("Can-Retransform-Classes"),
        ]

    def test_key_value_defaults_to_true(self):
        assert KeyValue("Flag").manifest_value == "true"
        assert to_key_value("a=").value is None

    def test_bad_key_value(self):
        with pytest.raises(DirectiveError):
            to_key_value("a=b=c")


class TestPropertyReplacement:
    """Tests for ${name} substitution."""

    def test_known_property(self):
        assert replace_properties("lib:${ver}", {"ver": "1.2"}) == "lib:1.2"

    def test_default_value(self):
        assert replace_properties("lib:${ver:2.0}", {}) == "lib:2.0"

    def test_unknown_left_alone(self):
        assert replace_properties("lib:${ver}", {}) == "lib:${ver}"

    def test_replacer_without_properties_applies_defaults(self):
        assert property_replacer(None)("lib:${ver:2.0}") == "lib:2.0"
        assert property_replacer({"ver": "3"})("lib:${ver:2.0}") == "lib:3"
