"""Tests for obsmap.textual: Textual integration layer."""

import threading

from textual.css.query import NoMatches

from obsmap import get_rendering_ref
from obsmap import textual as otx


class _MockWidget:
    """Minimal mock matching the Textual Widget interface otx needs."""

    def __init__(self, *, is_attached=True, raises=None):
        self.is_attached = is_attached
        self.refresh_count = 0
        self._raises = raises

    def refresh(self, *args, **kwargs):
        if self._raises is not None:
            raise self._raises
        self.refresh_count += 1


class _MockTimer:
    def __init__(self, delay, callback):
        self.delay = delay
        self.callback = callback
        self.stopped = False

    def stop(self):
        self.stopped = True


class _MockApp:
    """Minimal mock matching the Textual App interface otx needs."""

    def __init__(self):
        self.timers = []
        self._call_from_thread_log = []

    def call_from_thread(self, fn, *args):
        self._call_from_thread_log.append((fn, args))
        return fn(*args)

    def set_timer(self, delay, callback=None, **kwargs):
        timer = _MockTimer(delay, callback)
        self.timers.append(timer)
        return timer


class _Label(_MockWidget):
    def __init__(self, store, key, **kwargs):
        super().__init__(**kwargs)
        self.store = store
        self.key = key

    @otx.tracked
    def render(self):
        return f"{self.key}={self.store.state[self.key]}"


class TestForceUpdate:
    def test_refreshes_attached_widget(self):
        w = _MockWidget()
        assert otx.force_update(w) is True
        assert w.refresh_count == 1

    def test_detached_widget_not_viable(self):
        w = _MockWidget(is_attached=False)
        assert otx.force_update(w) is False
        assert w.refresh_count == 0

    def test_nomatches_not_viable(self):
        w = _MockWidget(raises=NoMatches("Label"))
        assert otx.force_update(w) is False

    def test_is_attached_default(self):
        assert otx.is_attached(object())


class TestTracked:
    def test_sets_consumer_during_call(self):
        seen = []

        class W(_MockWidget):
            @otx.tracked
            def render(self):
                seen.append(get_rendering_ref())
                return "ok"

        w = W()
        assert w.render() == "ok"
        assert seen == [w]
        assert get_rendering_ref() is None

    def test_preserves_metadata(self):
        assert _Label.render.__name__ == "render"


class TestAppTimer:
    def test_schedules_on_app(self):
        app = _MockApp()
        factory = otx.app_timer(app)
        calls = []
        handle = factory(2.0, lambda: calls.append(1))
        assert app.timers[0].delay == 2.0
        handle.cancel()
        assert app.timers[0].stopped
        app.timers[0].callback()
        assert calls == [1]


class TestCreateStore:
    def test_rendered_widget_refreshes_on_change(self):
        app = _MockApp()
        store = otx.create_store({"count": 0}, app=app)
        label = _Label(store, "count")
        assert label.render() == "count=0"

        store.state.count = 1
        assert label.refresh_count == 1
        assert label.render() == "count=1"

        store.reset()
        assert label.refresh_count == 2

    def test_unrelated_key_does_not_refresh(self):
        store = otx.create_store({"a": 0, "b": 0}, app=_MockApp())
        label = _Label(store, "a")
        label.render()
        store.state.b = 1
        assert label.refresh_count == 0

    def test_detached_widget_dropped(self):
        store = otx.create_store({"a": 0}, app=_MockApp())
        label = _Label(store, "a")
        label.render()
        label.is_attached = False
        store.state.a = 1
        label.is_attached = True
        store.state.a = 2
        assert label.refresh_count == 0

    def test_sweep_runs_on_app_timer(self):
        app = _MockApp()
        store = otx.create_store({"a": 0}, app=app)
        label = _Label(store, "a")
        label.render()
        store.state.a = 1
        store.state.a = 2
        live = [t for t in app.timers if not t.stopped]
        assert len(live) == 1
        label.is_attached = False
        live[0].callback()
        label.is_attached = True
        store.state.a = 3
        assert label.refresh_count == 2


class TestThreadMarshal:
    def test_background_write_uses_call_from_thread(self):
        app = _MockApp()
        store = otx.create_store({"n": 0}, app=app)
        label = _Label(store, "n")
        label.render()

        t = threading.Thread(target=store.set, args=("n", 1))
        t.start()
        t.join()

        assert label.refresh_count == 1
        marshaled = [fn for fn, _ in app._call_from_thread_log]
        assert otx.force_update in marshaled
        assert app.set_timer in marshaled

    def test_app_thread_write_is_direct(self):
        app = _MockApp()
        store = otx.create_store({"n": 0}, app=app)
        label = _Label(store, "n")
        label.render()
        store.set("n", 1)
        store.set("n", 2)
        assert label.refresh_count == 2
        assert app._call_from_thread_log == []

    def test_on_app_thread_returns_result(self):
        app = _MockApp()
        double = otx.on_app_thread(app, lambda v: v * 2)
        results = []
        t = threading.Thread(target=lambda: results.append(double(21)))
        t.start()
        t.join()
        assert results == [42]
        assert len(app._call_from_thread_log) == 1
