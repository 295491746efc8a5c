import importlib


def _reload_vars():
    import intercept.vars as vars_module

    return importlib.reload(vars_module)


def test_route_prefix_follows_base_url(monkeypatch):
    monkeypatch.setenv("INTERCEPT_BASE_URL", "http://proxy.local/through/")
    monkeypatch.delenv("INTERCEPT_ROUTE_PREFIX", raising=False)
    try:
        vars_module = _reload_vars()
        assert vars_module.INTERCEPT_ROUTE_PREFIX == "/through"
    finally:
        monkeypatch.undo()
        _reload_vars()


def test_explicit_route_prefix(monkeypatch):
    monkeypatch.setenv("INTERCEPT_ROUTE_PREFIX", "/p/")
    try:
        vars_module = _reload_vars()
        assert vars_module.INTERCEPT_ROUTE_PREFIX == "/p"
    finally:
        monkeypatch.undo()
        _reload_vars()


def test_proxy_timeout_parsed(monkeypatch):
    monkeypatch.setenv("PROXY_TIMEOUT", "2.5")
    try:
        vars_module = _reload_vars()
        assert vars_module.PROXY_TIMEOUT == 2.5
    finally:
        monkeypatch.undo()
        _reload_vars()
