"""Tests for report helpers and the template environment."""

from devtrace.core.errors import ClassifiedError, ErrorType
from devtrace.core.report import (
    ERROR_TEMPLATE,
    ErrorReport,
    build_environment,
    describe,
    request_facts,
    runtime_facts,
    safe_str,
    template_helpers,
)
from devtrace.utils.snippet import CodeLine, code_snippet
from devtrace.utils.stack import Frame


class TestDescribe:
    def test_plain_values(self):
        assert describe("boom") == "boom"
        assert describe(42) == "42"

    def test_exceptions_carry_type_name(self):
        assert describe(ValueError("bad value")) == "ValueError: bad value"
        assert describe(RuntimeError()) == "RuntimeError"

    def test_classified_errors_use_their_message(self):
        err = ClassifiedError("save failed", ErrorType(7), ValueError("disk full"))
        assert describe(err) == "save failed - disk full"

    def test_failing_str_gets_placeholder(self):
        class Opaque:
            def __str__(self) -> str:
                raise ValueError("no text")

        class BadError(Exception):
            def __str__(self) -> str:
                raise RuntimeError("no text")

        assert describe(Opaque()) == "<unprintable Opaque object>"
        assert describe(BadError()) == "BadError: <unprintable BadError object>"
        assert safe_str(BadError()) == "<unprintable BadError object>"


def test_runtime_facts_are_populated():
    facts = runtime_facts()

    assert set(facts) == {"python_version", "os", "arch"}
    assert facts["python_version"].count(".") == 2
    assert facts["os"]


def test_request_facts_without_request():
    assert request_facts(None) == {"method": "", "url": "", "user_agent": ""}


class TestTemplateHelpers:
    def test_registry(self):
        helpers = template_helpers()

        assert set(helpers) == {"split", "contains", "trim_space", "length", "parse_code_line"}
        assert helpers["split"]("a\nb", "\n") == ["a", "b"]
        assert helpers["contains"]("a | b", " | ")
        assert helpers["trim_space"]("  x \n") == "x"
        assert helpers["parse_code_line"](">> 3 | y") == CodeLine("3", " y", True)

    def test_length_is_polymorphic(self):
        length = template_helpers()["length"]

        assert length([Frame("f", "x.py", 1)] * 3) == 3
        assert length("hello") == 5
        assert length(123) == 0
        assert length(["a", "b"]) == 0

    def test_each_call_builds_a_new_registry(self):
        assert template_helpers() is not template_helpers()

    def test_environments_do_not_share_helpers(self):
        custom = template_helpers()
        custom["trim_space"] = lambda text: "custom"
        first = build_environment(helpers=custom)
        second = build_environment()

        assert first.globals["trim_space"]("x") == "custom"
        assert second.globals["trim_space"](" x ") == "x"


def test_packaged_template_renders_report(source_file):
    frame = Frame(
        function="app.handlers.create_user",
        file=str(source_file),
        line=50,
        snippet=code_snippet(str(source_file), 50),
    )
    report = ErrorReport(
        error="RuntimeError: <boom>",
        frames=[frame],
        method="POST",
        url="http://testserver/users",
        user_agent="pytest",
        python_version="3.12.1",
        os="linux",
        arch="x86_64",
        environment="development",
        debug_mode=True,
    )

    html = build_environment().get_template(ERROR_TEMPLATE).render(report=report)

    assert "RuntimeError: &lt;boom&gt;" in html
    assert "app.handlers.create_user" in html
    assert "Stack trace (1 frames)" in html
    assert 'class="hl"' in html
    assert "line50" in html
    assert "http://testserver/users" in html
    assert "3.12.1" in html
