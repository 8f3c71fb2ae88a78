from trojango import api


def test_registered_handler_receives_arguments():
    calls = []

    def handler(ctx, auth):
        calls.append((ctx, auth))
        return "done"

    api.register_handler("TEST_API_SERVICE", handler)
    assert api.run_service("ctx", "TEST_API_SERVICE", "auth") == "done"
    assert calls == [("ctx", "auth")]


def test_unknown_service_returns_none():
    assert api.run_service(None, "NO_SUCH_SERVICE", None) is None


def test_handler_errors_propagate():
    def failing(ctx, auth):
        raise ValueError("boom")

    api.register_handler("FAILING_SERVICE", failing)
    try:
        api.run_service(None, "FAILING_SERVICE", None)
    except ValueError as exc:
        assert str(exc) == "boom"
    else:
        raise AssertionError("expected ValueError")