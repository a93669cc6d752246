"""
Dynamic script registry (bundlekit.scripts).
"""

import hashlib
import logging

import pytest

from bundlekit.faults import AccessDeniedFault, ScriptNotFoundFault
from bundlekit.graph import RecursionGuard
from bundlekit.scripts import ConcatenatedScript, DynamicScript, TextScript


class CountingScript:

    def __init__(self, text="var a = 1;"):
        self.text = text
        self.calls = 0
        self.guards = []

    def get_text(self, guard):
        self.calls += 1
        self.guards.append(guard)
        return self.text

    def check_rights(self, guard):
        return True


# ============================================================================
# Scripts
# ============================================================================

class TestScriptTypes:

    def test_text_script(self):
        script = TextScript("body{}")
        assert isinstance(script, DynamicScript)
        assert script.get_text(RecursionGuard()) == "body{}"
        assert script.check_rights(RecursionGuard())

    def test_text_script_permission(self):
        assert not TextScript("x", permission=lambda: False).check_rights(RecursionGuard())

    def test_concatenated_script_passes_guard(self):
        seen = []

        def part(text):
            def produce(guard):
                seen.append(guard)
                return text
            return produce

        script = ConcatenatedScript([part("a"), part("b"), part("c")], separator="|")
        guard = RecursionGuard(["Outer"])
        assert script.get_text(guard) == "a|b|c"
        assert seen == [guard, guard, guard]

    def test_concatenated_script_rights(self):
        def deny(guard):
            raise AccessDeniedFault("Inner")

        assert ConcatenatedScript([]).check_rights(RecursionGuard())
        with pytest.raises(AccessDeniedFault):
            ConcatenatedScript([], rights=deny).check_rights(RecursionGuard())


# ============================================================================
# Registry
# ============================================================================

class TestRegistration:

    def test_names_case_insensitive(self, scripts):
        scripts.register("Theme", TextScript("x"))
        assert scripts.is_registered("theme")
        assert scripts.get_script_text("THEME") == "x"
        assert scripts.names() == ["Theme"]

    def test_unknown_script(self, scripts):
        assert scripts.get_script_text("Nope") is None
        assert not scripts.is_registered("Nope")

    def test_unregister(self, scripts):
        scripts.register("Theme", TextScript("x"))
        scripts.get_script_text("Theme")
        scripts.unregister("Theme")
        assert scripts.get_script_text("Theme") is None

    def test_register_replaces_cached_text(self, scripts):
        scripts.register("Theme", TextScript("old"))
        assert scripts.get_script_text("Theme") == "old"
        scripts.register("theme", TextScript("new"))
        assert scripts.get_script_text("Theme") == "new"


class TestCaching:

    def test_text_cached(self, scripts):
        script = CountingScript()
        scripts.register("Counter", script)
        assert scripts.get_script_text("Counter") == "var a = 1;"
        assert scripts.get_script_text("counter") == "var a = 1;"
        assert script.calls == 1

    def test_changed_drops_cache(self, scripts):
        script = CountingScript()
        scripts.register("Counter", script)
        scripts.get_script_text("Counter")
        script.text = "var a = 2;"
        assert scripts.get_script_text("Counter") == "var a = 1;"

        scripts.changed("Counter")
        assert scripts.get_script_text("Counter") == "var a = 2;"
        assert script.calls == 2

    def test_default_guard_is_empty(self, scripts):
        script = CountingScript()
        scripts.register("Counter", script)
        scripts.get_script_text("Counter")
        assert script.guards[0].chain == ()

    def test_given_guard_passed_through(self, scripts):
        script = CountingScript()
        scripts.register("Counter", script)
        guard = RecursionGuard(["Counter"])
        scripts.get_script_text("Counter", guard)
        assert script.guards == [guard]

    def test_result_overtaken_by_change_not_cached(self, scripts):
        class Volatile(CountingScript):
            def get_text(self, guard):
                text = super().get_text(guard)
                if self.calls == 1:
                    scripts.changed("Volatile")
                return text

        script = Volatile()
        scripts.register("Volatile", script)
        scripts.get_script_text("Volatile")
        scripts.get_script_text("Volatile")
        scripts.get_script_text("Volatile")
        assert script.calls == 2


class TestChangeNotification:

    def test_listeners_called_in_order(self, scripts):
        calls = []
        scripts.subscribe(lambda name: calls.append(("first", name)))
        scripts.subscribe(lambda name: calls.append(("second", name)))
        scripts.changed("Theme")
        assert calls == [("first", "Theme"), ("second", "Theme")]

    def test_changed_for_unknown_script_still_notifies(self, scripts, recorder):
        scripts.changed("Nope")
        assert recorder.names == ["Nope"]

    def test_failing_listener_logged(self, scripts, recorder, caplog):
        def broken(name):
            raise RuntimeError("boom")

        scripts.subscribe(broken)
        scripts.subscribe(recorder)
        with caplog.at_level(logging.ERROR, logger="bundlekit.scripts"):
            scripts.changed("Theme")

        assert recorder.names == ["Theme", "Theme"]
        assert "Change listener failed" in caplog.text

    def test_unsubscribe(self, scripts):
        calls = []
        listener = calls.append
        scripts.subscribe(listener)
        scripts.unsubscribe(listener)
        scripts.unsubscribe(listener)
        scripts.changed("Theme")
        assert calls == []

    def test_listener_may_cascade(self, scripts, recorder):
        def cascade(name):
            if name == "Inner":
                scripts.changed("Outer")

        scripts.subscribe(cascade)
        scripts.changed("Inner")
        assert recorder.names == ["Inner", "Outer"]


# ============================================================================
# Access
# ============================================================================

class TestAccess:

    def test_rights_unknown_script(self, scripts):
        with pytest.raises(ScriptNotFoundFault) as exc_info:
            scripts.check_script_rights("Nope")
        assert exc_info.value.message == "Dynamic script with name 'Nope' is not found!"

    def test_rights_denied(self, scripts):
        scripts.register("Secret", TextScript("x", permission=lambda: False))
        with pytest.raises(AccessDeniedFault) as exc_info:
            scripts.check_script_rights("Secret")
        assert exc_info.value.metadata["name"] == "Secret"
        assert exc_info.value.domain == "security"

    def test_read_script(self, scripts):
        scripts.register("Theme", TextScript("x"))
        assert scripts.read_script("theme") == "x"

    def test_read_script_denied(self, scripts):
        scripts.register("Secret", TextScript("x", permission=lambda: False))
        with pytest.raises(AccessDeniedFault):
            scripts.read_script("Secret")

    def test_read_unknown_script(self, scripts):
        with pytest.raises(ScriptNotFoundFault):
            scripts.read_script("Nope")


class TestScriptInclude:

    def test_include_carries_content_hash(self, scripts):
        scripts.register("Theme", TextScript("body{}"))
        digest = hashlib.md5(b"body{}", usedforsecurity=False).hexdigest()[:12]
        assert scripts.get_script_include("Theme", ".css") == f"Theme.css?v={digest}"

    def test_default_extension(self, scripts):
        scripts.register("Theme", TextScript("x"))
        assert scripts.get_script_include("Theme").startswith("Theme.js?v=")

    def test_hash_follows_changes(self, scripts):
        script = CountingScript("a")
        scripts.register("Theme", script)
        before = scripts.get_script_include("Theme")
        script.text = "b"
        scripts.changed("Theme")
        assert scripts.get_script_include("Theme") != before

    def test_unknown_script_has_no_hash(self, scripts):
        assert scripts.get_script_include("Nope", ".css") == "Nope.css"
