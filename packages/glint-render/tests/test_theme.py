"""Tests for glint.render.theme -- style/theme loading and resolution."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

import pytest

from glint.render.codes import CODES, CodeRegistry
from glint.render.config import BUILTIN_DIR, RenderSettings
from glint.render.theme import (
    BUILTIN_STYLE,
    REQUIRED_THEME_KEYS,
    BoundStyle,
    ColorSource,
    DefinitionError,
    RenderContext,
    ThemeManager,
    load_definitions,
    parse_definition,
)


def _write(base: str, subdir: str, filename: str, content: str) -> str:
    directory = os.path.join(base, subdir)
    os.makedirs(directory, exist_ok=True)
    path = os.path.join(directory, filename)
    Path(path).write_text(content, encoding="utf-8")
    return path


@pytest.fixture
def tmpdir_path():
    with tempfile.TemporaryDirectory() as tmpdir:
        yield tmpdir


# ---------------------------------------------------------------------------
# Definition files
# ---------------------------------------------------------------------------


class TestParseDefinition:
    """key=value definition files."""

    def test_basic(self, tmpdir_path: str) -> None:
        path = _write(
            tmpdir_path,
            "styles",
            "dark.style",
            "# Style: dark\nname=dark\n\nuser_prompt = @BOLD@@GREEN@\nbad line\n",
        )
        definition = parse_definition(path)
        assert definition.name == "dark"
        assert definition.values == {"user_prompt": "@BOLD@@GREEN@"}
        assert definition.path == path

    def test_value_may_contain_equals(self, tmpdir_path: str) -> None:
        path = _write(tmpdir_path, "themes", "t.theme", "name=t\nbanner_line1=a=b\n")
        assert parse_definition(path).get("banner_line1") == "a=b"

    def test_missing_name(self, tmpdir_path: str) -> None:
        path = _write(tmpdir_path, "styles", "anon.style", "user_prompt=@BOLD@\n")
        with pytest.raises(DefinitionError):
            parse_definition(path)

    def test_missing_key_is_empty(self, tmpdir_path: str) -> None:
        path = _write(tmpdir_path, "styles", "s.style", "name=s\n")
        assert parse_definition(path).get("nothing") == ""


class TestLoadDefinitions:
    """Search-path loading and override order."""

    def test_later_directory_overrides(self, tmpdir_path: str) -> None:
        first = os.path.join(tmpdir_path, "first")
        second = os.path.join(tmpdir_path, "second")
        _write(first, "styles", "dark.style", "name=dark\nuser_prompt=@RED@\n")
        _write(second, "styles", "dark.style", "name=dark\nuser_prompt=@BLUE@\n")

        loaded = load_definitions([first, second], "styles", ".style")
        assert loaded["dark"].get("user_prompt") == "@BLUE@"

    def test_skips_bad_files(self, tmpdir_path: str, caplog: pytest.LogCaptureFixture) -> None:
        _write(tmpdir_path, "styles", "good.style", "name=good\n")
        _write(tmpdir_path, "styles", "bad.style", "no name here\n")
        Path(os.path.join(tmpdir_path, "styles", "binary.style")).write_bytes(b"\xff\xfe\x00")
        _write(tmpdir_path, "styles", "notes.txt", "name=ignored\n")

        with caplog.at_level(logging.WARNING, logger="glint.render.theme"):
            loaded = load_definitions([tmpdir_path], "styles", ".style")

        assert list(loaded) == ["good"]
        assert "Skipping" in caplog.text

    def test_missing_directory(self, tmpdir_path: str) -> None:
        assert load_definitions([os.path.join(tmpdir_path, "nope")], "styles", ".style") == {}


# ---------------------------------------------------------------------------
# ThemeManager: loading and fallbacks
# ---------------------------------------------------------------------------


class TestThemeManagerLoading:
    """Construction-time loading."""

    def test_builtin_data(self) -> None:
        mgr = ThemeManager([BUILTIN_DIR])
        assert "default" in mgr.list_styles()
        assert {"amber", "mono"} <= set(mgr.list_styles())
        assert mgr.list_themes() == ["compact", "default"]
        assert mgr.get_color("markdown_bold") == "@BOLD@"

    def test_empty_search_path_synthesizes_defaults(self, tmpdir_path: str) -> None:
        mgr = ThemeManager([tmpdir_path])
        assert mgr.list_styles() == ["default"]
        assert mgr.list_themes() == ["default"]
        assert mgr.get_color("table_border") == BUILTIN_STYLE["table_border"]
        assert mgr.is_theme_complete() == (True, "Theme 'default' is complete")

    def test_user_dir_overrides_builtin(self, tmpdir_path: str) -> None:
        _write(tmpdir_path, "styles", "default.style", "name=default\nmarkdown_bold=@UNDERLINE@\n")
        mgr = ThemeManager([BUILTIN_DIR, tmpdir_path])
        assert mgr.get_color("markdown_bold") == "@UNDERLINE@"
        assert mgr.get_color("markdown_italic") == ""

    def test_unknown_initial_style_falls_back(self) -> None:
        mgr = ThemeManager([BUILTIN_DIR], style="nope", theme="missing")
        assert mgr.context == RenderContext("default", "default")

    def test_missing_default_style_is_reported(
        self, tmpdir_path: str, caplog: pytest.LogCaptureFixture
    ) -> None:
        _write(tmpdir_path, "styles", "dark.style", "name=dark\nuser_prompt=@RED@\n")
        with caplog.at_level(logging.WARNING, logger="glint.render.theme"):
            mgr = ThemeManager([tmpdir_path])
        assert mgr.current_style == "default"
        assert mgr.get_color("user_prompt") == ""
        assert "No default style loaded" in caplog.text
        assert "No default theme loaded" not in caplog.text

    def test_from_settings(self) -> None:
        settings = RenderSettings.in_memory({"style": "amber", "theme": "compact", "tags": False})
        mgr = ThemeManager.from_settings(settings, [BUILTIN_DIR])
        assert mgr.current_style == "amber"
        assert mgr.current_theme == "compact"
        assert not mgr.registry.enabled


# ---------------------------------------------------------------------------
# ThemeManager: resolution
# ---------------------------------------------------------------------------


class TestResolution:
    """Colours, templates and rendering."""

    def _manager(self, base: str) -> ThemeManager:
        _write(
            base,
            "styles",
            "test.style",
            "name=test\nagent_label=@BOLD@\nerror_message=@RED@\nuser_prompt=@GREEN@\n",
        )
        _write(
            base,
            "themes",
            "test.theme",
            "name=test\n"
            "agent_prefix={style.agent_label}BOT: @RESET@\n"
            "banner_line2=Session {var.session_id} {var.count}\n"
            "error_prefix={style.undefined_role}E@RESET@\n",
        )
        return ThemeManager([base], style="test", theme="test")

    def test_get_color_missing_role_is_empty(self, tmpdir_path: str) -> None:
        mgr = self._manager(tmpdir_path)
        assert mgr.get_color("agent_label") == "@BOLD@"
        assert mgr.get_color("no_such_role") == ""

    def test_get_template_missing_key_is_empty(self, tmpdir_path: str) -> None:
        mgr = self._manager(tmpdir_path)
        assert mgr.get_template("no_such_key") == ""

    def test_render_expands_style_and_tags(self, tmpdir_path: str) -> None:
        mgr = self._manager(tmpdir_path)
        assert mgr.render("agent_prefix") == f"{CODES['BOLD']}BOT: {CODES['RESET']}"

    def test_render_vars(self, tmpdir_path: str) -> None:
        mgr = self._manager(tmpdir_path)
        assert mgr.render("banner_line2", {"session_id": "abc", "count": 0}) == "Session abc 0"

    def test_render_missing_var_is_empty(self, tmpdir_path: str) -> None:
        mgr = self._manager(tmpdir_path)
        assert mgr.render("banner_line2", {"session_id": None}) == "Session  "

    def test_render_undefined_role_is_empty(self, tmpdir_path: str) -> None:
        mgr = self._manager(tmpdir_path)
        assert mgr.render("error_prefix") == f"E{CODES['RESET']}"

    def test_render_missing_key_is_empty(self, tmpdir_path: str) -> None:
        mgr = self._manager(tmpdir_path)
        assert mgr.render("no_such_key") == ""

    def test_render_with_disabled_registry(self, tmpdir_path: str) -> None:
        mgr = self._manager(tmpdir_path)
        mgr.registry.disable()
        assert mgr.render("agent_prefix") == "@BOLD@BOT: @RESET@"

    def test_render_string(self, tmpdir_path: str) -> None:
        mgr = self._manager(tmpdir_path)
        assert mgr.render_string("{style.error_message}{var.msg}", {"msg": "x"}) == f"{CODES['RED']}x"
        assert mgr.render_string("") == ""

    def test_spinner_frames(self, tmpdir_path: str) -> None:
        mgr = self._manager(tmpdir_path)
        assert mgr.get_spinner_frames()[0] == "⠋"
        builtin = ThemeManager([BUILTIN_DIR], style="mono")
        assert builtin.get_spinner_frames() == ["|", "/", "-", "\\"]


# ---------------------------------------------------------------------------
# Render context
# ---------------------------------------------------------------------------


class TestRenderContext:
    """Switching and explicit contexts."""

    def test_set_style(self) -> None:
        mgr = ThemeManager([BUILTIN_DIR])
        assert mgr.set_style("amber") is True
        assert mgr.current_style == "amber"
        assert mgr.get_color("user_prompt") == "@BRIGHT_YELLOW@"

    def test_unknown_style_is_noop(self, caplog: pytest.LogCaptureFixture) -> None:
        mgr = ThemeManager([BUILTIN_DIR])
        before = mgr.context
        with caplog.at_level(logging.ERROR, logger="glint.render.theme"):
            assert mgr.set_style("nope") is False
        assert mgr.context == before
        assert "nope" in caplog.text

    def test_unknown_theme_is_noop(self) -> None:
        mgr = ThemeManager([BUILTIN_DIR])
        assert mgr.set_theme("nope") is False
        assert mgr.current_theme == "default"

    def test_explicit_context(self) -> None:
        mgr = ThemeManager([BUILTIN_DIR])
        amber = RenderContext(style="amber")
        assert mgr.get_color("user_prompt", amber) == "@BRIGHT_YELLOW@"
        assert mgr.get_color("user_prompt") == "@BRIGHT_GREEN@"
        assert mgr.current_style == "default"

    def test_explicit_theme_context(self) -> None:
        mgr = ThemeManager([BUILTIN_DIR], registry=CodeRegistry(enabled=False))
        compact = RenderContext(theme="compact", style="mono")
        assert mgr.render("nav_quit", context=compact) == "@BOLD@q@RESET@"

    def test_bound_style_is_pinned(self) -> None:
        mgr = ThemeManager([BUILTIN_DIR])
        bound = mgr.bind(RenderContext(style="mono"))
        assert isinstance(bound, BoundStyle)
        assert isinstance(bound, ColorSource)
        mgr.set_style("amber")
        assert bound.get_color("markdown_code") == "@REVERSE@"
        assert bound.registry is mgr.registry

    def test_unknown_context_name_uses_default(self) -> None:
        mgr = ThemeManager([BUILTIN_DIR])
        assert mgr.get_color("markdown_bold", RenderContext(style="ghost")) == "@BOLD@"


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class TestValidation:
    """Completeness checks."""

    def test_builtin_themes_complete(self) -> None:
        mgr = ThemeManager([BUILTIN_DIR])
        for name in mgr.list_themes():
            ok, msg = mgr.is_theme_complete(name)
            assert ok, msg

    def test_builtin_styles_cover_referenced_roles(self) -> None:
        mgr = ThemeManager([BUILTIN_DIR])
        for name in mgr.list_styles():
            ok, msg = mgr.is_style_complete(name)
            assert ok, msg

    def test_incomplete_theme_names_every_missing_key(self, tmpdir_path: str) -> None:
        _write(tmpdir_path, "themes", "thin.theme", "name=thin\nagent_prefix=> \n")
        mgr = ThemeManager([tmpdir_path])

        missing = mgr.missing_theme_keys("thin")
        assert missing == [k for k in REQUIRED_THEME_KEYS if k != "agent_prefix"]

        ok, msg = mgr.is_theme_complete("thin")
        assert not ok
        for key in missing:
            assert key in msg
        assert "agent_prefix" not in msg

    def test_unknown_theme(self) -> None:
        mgr = ThemeManager([BUILTIN_DIR])
        assert mgr.is_theme_complete("ghost") == (False, "Theme 'ghost' not found")

    def test_missing_style_roles(self, tmpdir_path: str) -> None:
        _write(tmpdir_path, "styles", "bare.style", "name=bare\ndim=@DIM@\n")
        _write(tmpdir_path, "themes", "t.theme", "name=t\nx={style.dim}{style.highlight}{style.data}\n")
        mgr = ThemeManager([tmpdir_path])
        assert mgr.referenced_roles() == {"dim", "highlight", "data"}
        assert mgr.missing_style_roles("bare") == ["data", "highlight"]
        ok, msg = mgr.is_style_complete("bare")
        assert not ok
        assert "data" in msg and "highlight" in msg


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------


class TestSave:
    """save_style / save_theme."""

    def test_save_style_round_trip(self, tmpdir_path: str) -> None:
        mgr = ThemeManager([BUILTIN_DIR, tmpdir_path], style="amber")
        assert mgr.save_style("mine") is True

        path = os.path.join(tmpdir_path, "styles", "mine.style")
        text = Path(path).read_text(encoding="utf-8")
        assert text.startswith("# Style: mine\nname=mine\n")

        assert "mine" in mgr.list_styles()
        assert mgr.set_style("mine")
        assert mgr.get_color("user_prompt") == "@BRIGHT_YELLOW@"

        reloaded = ThemeManager([BUILTIN_DIR, tmpdir_path], style="mine")
        assert reloaded.current_style == "mine"
        assert reloaded.get_style_definition("mine").values == mgr.get_style_definition("amber").values

    def test_save_theme(self, tmpdir_path: str) -> None:
        mgr = ThemeManager([BUILTIN_DIR, tmpdir_path], theme="compact")
        assert mgr.save_theme("copy") is True
        assert os.path.isfile(os.path.join(tmpdir_path, "themes", "copy.theme"))
        assert mgr.get_theme_definition("copy").get("nav_quit") == "{style.prompt_indicator}q@RESET@"

    def test_save_with_empty_search_path(self, tmpdir_path: str, monkeypatch: pytest.MonkeyPatch) -> None:
        config_dir = os.path.join(tmpdir_path, "glint")
        monkeypatch.setenv("GLINT_CONFIG_DIR", config_dir)
        mgr = ThemeManager([])
        assert mgr.user_dir == config_dir
        assert mgr.save_style("mine") is True
        assert os.path.isfile(os.path.join(config_dir, "styles", "mine.style"))
        assert "mine" in mgr.list_styles()

    def test_save_failure_returns_false(self, tmpdir_path: str) -> None:
        blocker = os.path.join(tmpdir_path, "file")
        Path(blocker).write_text("", encoding="utf-8")
        mgr = ThemeManager([BUILTIN_DIR, blocker])
        assert mgr.save_style("x") is False
        assert "x" not in mgr.list_styles()
