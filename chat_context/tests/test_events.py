"""Tests for the event emitter."""

import logging

from chat_context.events import Emitter


class TestEmitter:
    """Tests for Emitter."""

    def test_fire_calls_listeners_in_order(self):
        emitter = Emitter()
        calls = []
        emitter.subscribe(lambda: calls.append("first"))
        emitter.subscribe(lambda: calls.append("second"))

        emitter.fire()

        assert calls == ["first", "second"]

    def test_fire_passes_arguments(self):
        emitter = Emitter()
        received = []
        emitter.subscribe(received.append)

        emitter.fire("payload")

        assert received == ["payload"]

    def test_unsubscribe(self):
        emitter = Emitter()
        calls = []
        unsubscribe = emitter.subscribe(lambda: calls.append(True))

        unsubscribe()
        unsubscribe()
        emitter.fire()

        assert calls == []
        assert emitter.listener_count == 0

    def test_same_callback_twice_unsubscribes_independently(self):
        emitter = Emitter()
        calls = []

        def callback():
            calls.append(True)

        first = emitter.subscribe(callback)
        emitter.subscribe(callback)
        first()
        emitter.fire()

        assert calls == [True]

    def test_listener_may_unsubscribe_while_firing(self):
        emitter = Emitter()
        calls = []
        handles = {}

        def once():
            calls.append("once")
            handles["once"]()

        handles["once"] = emitter.subscribe(once)
        emitter.subscribe(lambda: calls.append("other"))

        emitter.fire()
        emitter.fire()

        assert calls == ["once", "other", "other"]

    def test_failing_listener_is_logged_and_others_run(self, caplog):
        emitter = Emitter("change")
        calls = []

        def broken():
            raise ValueError("boom")

        emitter.subscribe(broken)
        emitter.subscribe(lambda: calls.append(True))

        with caplog.at_level(logging.ERROR, logger="chat_context.events"):
            emitter.fire()

        assert calls == [True]
        assert "change" in caplog.text

    def test_dispose_drops_listeners(self):
        emitter = Emitter()
        calls = []
        emitter.subscribe(lambda: calls.append(True))

        emitter.dispose()
        emitter.fire()
        late = emitter.subscribe(lambda: calls.append(True))
        late()
        emitter.fire()

        assert calls == []
        assert emitter.disposed
        assert emitter.listener_count == 0
