"""
Client settings

Timeouts, TLS, proxy, user agent, cookies and registry defaults.
"""

from src.fluent_http import (
    ClientSettings,
    HTTPClient,
    TLSConfig,
    set_default_settings,
    static_proxy,
)


def custom_timeouts():
    print("\n=== Timeouts ===")

    settings = ClientSettings.create(connect_timeout=3, read_write_timeout=10)
    client = HTTPClient("https://httpbin.org", settings=settings).get("/delay/1")
    print(f"Status: {client.response().status_code}")


def shared_cookies():
    """Cookie, полученные одним клиентом, уходят в запросах другого."""
    print("\n=== Shared cookie jar ===")

    settings = ClientSettings(enable_cookie=True)
    HTTPClient("https://httpbin.org", settings=settings).get("/cookies/set").param("session", "abc").string()

    cookies = HTTPClient("https://httpbin.org", settings=settings).get("/cookies").to_json()
    print(f"Cookies: {cookies}")


def proxy_and_tls():
    print("\n=== Proxy and TLS ===")

    settings = ClientSettings(
        proxy=static_proxy("http://localhost:3128"),
        tls=TLSConfig(verify="/etc/ssl/certs/ca-certificates.crt"),
    )
    print(settings)


def registry_defaults():
    """Новые клиенты копируют дефолты реестра при создании."""
    print("\n=== Registry defaults ===")

    set_default_settings(ClientSettings(user_agent="inventory-sync/1.4"))
    client = HTTPClient("https://httpbin.org").get("/user-agent")
    print(client.to_json())


def debug_dump():
    print("\n=== Request dump ===")

    settings = ClientSettings(show_debug=True)
    client = HTTPClient("https://httpbin.org", settings=settings).post("/post").param("q", "shoes")
    client.response()
    print(client.dump.decode())


if __name__ == "__main__":
    custom_timeouts()
    shared_cookies()
    proxy_and_tls()
    registry_defaults()
    debug_dump()
