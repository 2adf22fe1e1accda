"""Tests for trace logging."""

from chat_context.trace import TRACE_ENV_VAR, resolve_trace_path, trace, trace_write


class TestResolveTracePath:

    def test_env_var_wins(self, monkeypatch, tmp_path):
        monkeypatch.setenv(TRACE_ENV_VAR, str(tmp_path / "t.log"))

        assert resolve_trace_path(TRACE_ENV_VAR) == str(tmp_path / "t.log")

    def test_empty_value_disables(self, monkeypatch):
        monkeypatch.setenv(TRACE_ENV_VAR, "")

        assert resolve_trace_path(TRACE_ENV_VAR) is None

    def test_default_in_temp_dir(self, monkeypatch):
        monkeypatch.delenv(TRACE_ENV_VAR, raising=False)

        assert resolve_trace_path(TRACE_ENV_VAR).endswith("chat_context_trace.log")


class TestTraceWrite:

    def test_writes_line_and_creates_dirs(self, tmp_path):
        path = tmp_path / "nested" / "trace.log"

        trace_write("Registry", "added a", str(path))

        content = path.read_text()
        assert "[Registry] added a" in content

    def test_none_path_is_noop(self):
        trace_write("Registry", "ignored", None)

    def test_unwritable_path_does_not_raise(self, tmp_path):
        directory = tmp_path / "dir"
        directory.mkdir()

        trace_write("Registry", "ignored", str(directory))

    def test_traceback_is_appended(self, tmp_path):
        path = tmp_path / "trace.log"
        try:
            raise ValueError("broken")
        except ValueError:
            trace_write("Ref", "failed", str(path), include_traceback=True)

        assert "ValueError: broken" in path.read_text()

    def test_trace_uses_env_path(self, monkeypatch, tmp_path):
        path = tmp_path / "env.log"
        monkeypatch.setenv(TRACE_ENV_VAR, str(path))

        trace("Admission", "excluded x")

        assert "[Admission] excluded x" in path.read_text()
