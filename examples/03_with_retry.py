"""
Retry

Only transport errors are retried; HTTP status codes are returned as-is.
"""

from src.fluent_http import ClientSettings, HTTPClient, RetryConfig, TransportError


def fixed_retries():
    print("\n=== Fixed retries ===")

    settings = ClientSettings.create(retries=3, connect_timeout=1)
    client = HTTPClient("http://10.255.255.1", settings=settings).get("/")

    try:
        client.response()
    except TransportError as e:
        print(f"Gave up after {client.attempts} attempts: {e}")


def until_success_with_deadline():
    print("\n=== Retry until success (deadline 10s) ===")

    settings = ClientSettings(
        retry=RetryConfig.from_count(-1, deadline=10, backoff_base=0.5, backoff_max=2)
    )
    client = HTTPClient("https://httpbin.org", settings=settings).get("/get")
    print(f"Status: {client.response().status_code}, attempts: {client.attempts}")


def custom_delay():
    print("\n=== Custom delay function ===")

    settings = ClientSettings(retry=RetryConfig(max_retries=2, delay_func=lambda attempt: 0.2 * attempt))
    client = HTTPClient("https://httpbin.org", settings=settings).get("/status/503")
    # 503 - это ответ, не транспортная ошибка
    print(f"Status: {client.response().status_code}, attempts: {client.attempts}")


if __name__ == "__main__":
    fixed_retries()
    until_success_with_deadline()
    custom_delay()
